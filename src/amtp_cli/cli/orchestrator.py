"""Command orchestration: config preconditions, call sequencing, persistence."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from amtp_cli.cli.args import Invocation
from amtp_cli.cli.config import AgentConfig, ConfigStore
from amtp_cli.client import GatewayClient
from amtp_cli.errors import AmtpError, ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

AGENT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9._-]{0,62}[A-Za-z0-9])?$")

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "setup": ("gatewayUrl", "adminKey"),
    "send": ("gatewayUrl", "agentAddress"),
    "inbox": ("gatewayUrl", "agentAddress", "apiKey"),
    "ack": ("gatewayUrl", "agentAddress", "apiKey"),
    "discover": ("gatewayUrl",),
    "status": ("gatewayUrl",),
    "unregister": ("gatewayUrl", "adminKey", "agentName"),
    "whoami": (),
}

_FIELD_HINTS = {
    "gatewayUrl": "Set AMTP_GATEWAY_URL env var or run setup first.",
    "adminKey": "Set AMTP_ADMIN_KEY env var.",
    "apiKey": 'Run "amtp setup" first, or set AMTP_API_KEY.',
    "agentAddress": 'Run "amtp setup" first.',
    "agentName": 'Run "amtp setup" first, or set AMTP_AGENT_NAME.',
}

USAGE = {
    "setup": "amtp setup --name <agent-name>",
    "send": "amtp send --to <address> [--subject <s>] [--text <t> | --payload <json>]",
    "ack": "amtp ack <message-id>",
    "status": "amtp status <message-id>",
}

ClientFactory = Callable[[AgentConfig], GatewayClient]


def is_valid_agent_name(name: str) -> bool:
    return bool(AGENT_NAME_PATTERN.fullmatch(name))


def validate_agent_name(name: str) -> str:
    if not is_valid_agent_name(name):
        raise ValidationError(
            "Invalid agent name. Use letters, numbers, hyphens, underscores, dots (1-64 chars). "
            "Cannot start/end with -, _, or ."
        )
    return name


def require_config(config: AgentConfig, *required: str) -> None:
    for key in required:
        if not config.get(key):
            hint = _FIELD_HINTS.get(key, f"Set {key}.")
            raise ConfigurationError(f"Missing config: {key}. {hint}", field=key)


def parse_payload(invocation: Invocation) -> tuple[bool, Any]:
    """Resolve the ``send`` payload as ``(present, value)``."""
    raw_payload = invocation.flag_text("payload")
    if raw_payload:
        try:
            return True, json.loads(raw_payload)
        except ValueError as exc:
            raise ValidationError("--payload must be valid JSON.") from exc
    text = invocation.flag_text("text")
    if text:
        return True, {"text": text}
    return False, None


@dataclass(frozen=True)
class CommandOutcome:
    command: str
    result: Any
    context: dict[str, Any] = field(default_factory=dict)


class CommandOrchestrator:
    """Runs one command per call against a fresh configuration snapshot."""

    def __init__(
        self,
        store: ConfigStore,
        *,
        client_factory: ClientFactory = GatewayClient.from_config,
    ) -> None:
        self.store = store
        self.client_factory = client_factory
        self._handlers: dict[str, Callable[[AgentConfig, Invocation], CommandOutcome]] = {
            "setup": self._setup,
            "send": self._send,
            "inbox": self._inbox,
            "ack": self._ack,
            "discover": self._discover,
            "status": self._status,
            "unregister": self._unregister,
            "whoami": self._whoami,
        }

    def run(self, invocation: Invocation) -> CommandOutcome:
        handler = self._handlers.get(invocation.command)
        if handler is None:
            raise ValidationError(
                f'Unknown command: "{invocation.command}". Run "amtp help" for usage.'
            )
        config = self.store.load()
        logger.debug("running %s", invocation.command)
        return handler(config, invocation)

    def _client(self, config: AgentConfig) -> GatewayClient:
        return self.client_factory(config)

    def _setup(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        name = invocation.flag_text("name")
        if not name:
            raise ValidationError(f"--name is required. Usage: {USAGE['setup']}")
        require_config(config, *REQUIRED_FIELDS["setup"])
        validate_agent_name(name)

        logger.info("registering agent %r on %s", name, config.gateway_url)
        result = self._client(config).register_agent(name)

        api_key = result.get("api_key") if isinstance(result, dict) else None
        if not api_key:
            raise AmtpError(
                200,
                "MISSING_API_KEY",
                "Registration succeeded but no API key was returned. The agent may already exist.",
            )
        agent_address = result.get("address") or ""

        update = {"gatewayUrl": config.gateway_url, "agentName": name, "apiKey": api_key}
        if agent_address:
            update["agentAddress"] = agent_address
        self.store.save(update)

        return CommandOutcome(
            command="setup",
            result={
                "agent_name": name,
                "agent_address": agent_address,
                "gateway_url": config.gateway_url,
                "config_file": str(self.store.path),
            },
        )

    def _send(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        require_config(config, *REQUIRED_FIELDS["send"])
        to = invocation.flag_text("to")
        if not to:
            raise ValidationError(f"--to is required. Usage: {USAGE['send']}")
        subject = invocation.flag_text("subject") or None
        has_payload, payload = parse_payload(invocation)

        client = self._client(config)
        if has_payload:
            result = client.send_message(to, subject=subject, payload=payload)
        else:
            result = client.send_message(to, subject=subject)
        return CommandOutcome(command="send", result=result, context={"to": to})

    def _inbox(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        require_config(config, *REQUIRED_FIELDS["inbox"])
        return CommandOutcome(command="inbox", result=self._client(config).get_inbox())

    def _ack(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        message_id = invocation.positional[0] if invocation.positional else ""
        if not message_id:
            raise ValidationError(f"Message ID is required. Usage: {USAGE['ack']}")
        require_config(config, *REQUIRED_FIELDS["ack"])
        result = self._client(config).ack_message(message_id)
        return CommandOutcome(command="ack", result=result, context={"message_id": message_id})

    def _discover(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        require_config(config, *REQUIRED_FIELDS["discover"])
        domain = invocation.positional[0] if invocation.positional else None
        result = self._client(config).discover_agents(domain)
        return CommandOutcome(command="discover", result=result, context={"domain": domain})

    def _status(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        message_id = invocation.positional[0] if invocation.positional else ""
        if not message_id:
            raise ValidationError(f"Message ID is required. Usage: {USAGE['status']}")
        require_config(config, *REQUIRED_FIELDS["status"])
        result = self._client(config).get_message_status(message_id)
        return CommandOutcome(command="status", result=result, context={"message_id": message_id})

    def _unregister(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        require_config(config, *REQUIRED_FIELDS["unregister"])
        logger.info("unregistering agent %r", config.agent_name)
        result = self._client(config).unregister_agent(config.agent_name)
        return CommandOutcome(
            command="unregister",
            result=result,
            context={"agent_name": config.agent_name},
        )

    def _whoami(self, config: AgentConfig, invocation: Invocation) -> CommandOutcome:
        return CommandOutcome(
            command="whoami",
            result={**config.redacted(), "configFile": str(self.store.path)},
        )
