"""Configuration helpers for the amtp CLI."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".amtp-config.json"

GATEWAY_URL_ENV_VAR = "AMTP_GATEWAY_URL"
AGENT_NAME_ENV_VAR = "AMTP_AGENT_NAME"
AGENT_ADDRESS_ENV_VAR = "AMTP_AGENT_ADDRESS"
API_KEY_ENV_VAR = "AMTP_API_KEY"
ADMIN_KEY_ENV_VAR = "AMTP_ADMIN_KEY"

# attribute -> (file key, env var)
_FIELD_SOURCES = {
    "gateway_url": ("gatewayUrl", GATEWAY_URL_ENV_VAR),
    "agent_name": ("agentName", AGENT_NAME_ENV_VAR),
    "agent_address": ("agentAddress", AGENT_ADDRESS_ENV_VAR),
    "api_key": ("apiKey", API_KEY_ENV_VAR),
    "admin_key": ("adminKey", ADMIN_KEY_ENV_VAR),
}

_SECRET_FIELDS = ("api_key", "admin_key")


def file_key(attribute: str) -> str:
    return _FIELD_SOURCES[attribute][0]


def env_var(attribute: str) -> str:
    return _FIELD_SOURCES[attribute][1]


def _mask(value: str) -> str:
    return f"{value[:8]}..." if value else ""


@dataclass(frozen=True)
class AgentConfig:
    gateway_url: str = ""
    agent_name: str = ""
    agent_address: str = ""
    api_key: str = ""
    admin_key: str = ""

    def get(self, file_key_name: str) -> str:
        """Look a value up by its persisted (camelCase) key."""
        for attribute, (key, _env) in _FIELD_SOURCES.items():
            if key == file_key_name:
                return getattr(self, attribute)
        raise KeyError(file_key_name)

    def redacted(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            payload[file_key(item.name)] = _mask(value) if item.name in _SECRET_FIELDS else value
        return payload


class ConfigStore:
    """JSON-backed agent configuration with environment overrides.

    Values resolve as environment variable, then persisted file, then empty
    string. The file is re-read on every ``load``; nothing is cached.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else DEFAULT_CONFIG_PATH

    def _read_file(self) -> dict[str, Any]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.debug("ignoring unreadable config file %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.debug("ignoring config file %s: top-level value is not an object", self.path)
            return {}
        return raw

    def load(self) -> AgentConfig:
        stored = self._read_file()
        values: dict[str, str] = {}
        for attribute, (key, env_name) in _FIELD_SOURCES.items():
            env_value = os.getenv(env_name)
            file_value = stored.get(key)
            if env_value:
                values[attribute] = env_value
            elif isinstance(file_value, str) and file_value:
                values[attribute] = file_value
            else:
                values[attribute] = ""
        return AgentConfig(**values)

    def save(self, partial: Mapping[str, Any]) -> dict[str, Any]:
        merged = {**self._read_file(), **partial}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(merged, indent=2) + "\n", encoding="utf-8")
        if os.name == "posix":
            self.path.chmod(0o600)
        logger.debug("saved config keys %s to %s", sorted(partial), self.path)
        return merged
