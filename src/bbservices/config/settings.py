"""Unified settings — keyword overrides, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags or explicit application overrides
  2. Env vars     — ``BBSERVICES_*`` prefix
  3. TOML file    — ``bbservices.toml``, or the file named by ``BBSERVICES_CONFIG``
  4. Code defaults

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource`. The TOML
file is the nearest ``bbservices.toml`` in the start directory or one of its
parents.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

CONFIG_FILENAME = "bbservices.toml"
CONFIG_ENV_VAR = "BBSERVICES_CONFIG"


class ConfigError(Exception):
    """Raised when a discovered config file cannot be parsed."""


def locate_config_file(start: Path | None = None) -> Path | None:
    """Return the TOML file settings should be read from, or None.

    ``BBSERVICES_CONFIG`` wins when set; a missing file there means no
    config at all rather than falling back to the directory search.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from the ``[bbservices]`` table of a TOML file.

    A file without that table is read as a flat settings mapping.
    """

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigError(msg) from exc
            self._data = data.get("bbservices", data)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class BBServicesSettings(BaseSettings):
    """Runtime settings for bbservices.

    Attributes:
        verbose: DEBUG logging for the ``bbservices`` logger.
        log_json: Emit JSON log lines instead of console output.
        json_output: CLI prints results as JSON.
        telemetry: Time runs into span trees exported via ``ServiceResult.meta``.
        log_spans: Log a ``span.complete`` event for every finished root span.
        log_failures: Register the builtin plugin that logs failed runs.
        load_plugins: Load plugins from the ``bbservices.plugins`` entry point group.
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BBSERVICES_",
        "extra": "ignore",
    }

    verbose: bool = False
    log_json: bool = False
    json_output: bool = False
    telemetry: bool = False
    log_spans: bool = False
    log_failures: bool = True
    load_plugins: bool = True
    config_path: Path | None = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> BBServicesSettings:
        """Construct settings, discovering ``bbservices.toml`` unless *config_path* is given.

        *overrides* take priority over every other source. ``None`` values
        are dropped so unset CLI flags do not mask env or TOML values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = locate_config_file(start)

        explicit = {k: v for k, v in overrides.items() if v is not None}
        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **explicit)
        finally:
            _tls.toml_path = None
