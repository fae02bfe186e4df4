from .middleware import (
    ScriptedHandler,
    make_request,
    recording_middleware,
    recording_terminal,
)
from .transport import (
    FakeTransportEngine,
    json_response,
    status_response,
    tcp_config,
    text_response,
)


__all__ = [
    'ScriptedHandler',
    'make_request',
    'recording_middleware',
    'recording_terminal',
    'FakeTransportEngine',
    'json_response',
    'status_response',
    'tcp_config',
    'text_response',
]
