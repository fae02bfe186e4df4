import json
import logging
import yaml
from typing import Any, Callable
from pathlib import Path

from config.models.executor import ExecutorConfig
from config.preprocessor import ConfigPreprocessor, ConfigValue


class ConfigLoader:
    """
    Load + preprocess + validate executor configs from YAML/JSON.

    - Sources are a file path or the raw document text.
    - Preprocessors run on raw data before Pydantic validation.
    - Result is a fully validated ExecutorConfig
    """

    YAML_SUFFIXES = frozenset({".yaml", ".yml"})

    def __init__(self, preprocessors: list[ConfigPreprocessor] | None = None):
        self._preprocessors = list(preprocessors or [])
        self._logger = logging.getLogger(self.__class__.__name__)

    def add_preprocessor(self, preprocessor: ConfigPreprocessor) -> None:
        self._preprocessors.append(preprocessor)

    def from_yaml(self, source: str | Path) -> ExecutorConfig:
        data = self._load(source, parser=yaml.safe_load)
        return self._build(data)

    def from_json(self, source: str | Path) -> ExecutorConfig:
        data = self._load(source, parser=json.loads)
        return self._build(data)

    def from_file(self, path: str | Path) -> ExecutorConfig:
        """Pick the parser from the file suffix: .yaml/.yml or JSON."""
        path = Path(path)
        if path.suffix.lower() in self.YAML_SUFFIXES:
            return self.from_yaml(path)
        return self.from_json(path)

    def from_dict(self, data: dict[str, Any]) -> ExecutorConfig:
        return self._build(data)

    def _load(
        self,
        source: str | Path,
        *,
        parser: Callable[[str], Any],
    ) -> ConfigValue:
        text = self._read_source(source)
        data = parser(text)
        # an empty YAML document parses to None
        return data if data is not None else {}

    def _read_source(self, source: str | Path) -> str:
        """
        Read source as text.
        If `source` is a file path, read it.
        Otherwise treat it as raw content.
        """
        if isinstance(source, Path):
            return source.read_text()

        if "\n" not in source:
            try:
                p = Path(source)
                if p.is_file():
                    self._logger.debug(f"Reading executor config from {p}")
                    return p.read_text()
            except OSError:
                pass

        return source

    def _build(self, data: ConfigValue) -> ExecutorConfig:
        for pre in self._preprocessors:
            data = pre.process(data)

        return ExecutorConfig.model_validate(data)
