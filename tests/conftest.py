import pytest

from tests.fixtures.configs.executor import (
    full_executor_config,
    minimal_executor_config,
    yaml_executor_config,
)
from tests.fixtures.core import FakeClock


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def dummy_headers():
    return {
        "Content-Type": "application/json",
        "Authorization": "Bearer dummy-token"
    }

__all__ = [
    'full_executor_config',
    'minimal_executor_config',
    'yaml_executor_config',
]
