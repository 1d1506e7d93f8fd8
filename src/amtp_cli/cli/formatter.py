"""Plain-text rendering of gateway results.

Output is read by people and by agents scraping stdout, so it stays
line-oriented and stable.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

from amtp_cli.cli.orchestrator import CommandOutcome
from amtp_cli.models import AgentDirectory, DeliveryStatus, Inbox


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def format_timestamp(value: str | None) -> str:
    if not value:
        return ""
    try:
        epoch = float(value)
    except ValueError:
        epoch = None
    if epoch is not None:
        # Epoch values above ~1e11 are milliseconds.
        seconds = epoch / 1000 if epoch > 1e11 else epoch
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return value
        return parsed.strftime("%Y-%m-%d %H:%M:%S UTC")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def format_inbox(response: Any) -> str:
    inbox: Inbox = Inbox.from_response(response)
    if not inbox.messages:
        return "Inbox is empty."

    count = inbox.count if inbox.count is not None else len(inbox.messages)
    lines = [f"Inbox for {inbox.recipient or '?'} ({_plural(count, 'message')}):", ""]
    for index, message in enumerate(inbox.messages, start=1):
        lines.append(f"  {index}. [{message.message_id}]")
        lines.append(f"     From:    {message.sender}")
        if message.subject:
            lines.append(f"     Subject: {message.subject}")
        lines.append(f"     Time:    {format_timestamp(message.timestamp)}")
        if message.payload is not None:
            payload = message.payload
            rendered = payload if isinstance(payload, str) else json.dumps(payload)
            lines.append(f"     Payload: {rendered}")
        lines.append("")
    return "\n".join(lines)


def format_agents(response: Any) -> str:
    directory = AgentDirectory.from_response(response)
    if not directory.agents:
        return "No agents found."

    lines = [f"Discovered {_plural(len(directory.agents), 'agent')}:", ""]
    for agent in directory.agents:
        address = agent.address or agent.name or "unknown"
        mode = agent.delivery_mode or "?"
        schemas = (
            f" schemas=[{', '.join(agent.supported_schemas)}]" if agent.supported_schemas else ""
        )
        lines.append(f"  - {address}  ({mode}){schemas}")
    return "\n".join(lines)


def format_status(response: Any) -> str:
    status: DeliveryStatus = DeliveryStatus.from_response(response)
    lines = [
        f"Message {status.message_id or status.id or '?'}:",
        f"  Status: {status.status or 'unknown'}",
    ]
    if status.recipients:
        lines.append("  Recipients:")
        for recipient in status.recipients:
            detail = f"    - {recipient.address}: {recipient.status}"
            if recipient.delivery_mode:
                detail += f" ({recipient.delivery_mode})"
            if recipient.acknowledged:
                detail += " [ACK]"
            if recipient.error_message:
                detail += f" error: {recipient.error_message}"
            lines.append(detail)
    return "\n".join(lines)


def format_sent_message(response: Any) -> str:
    status: DeliveryStatus = DeliveryStatus.from_response(response)
    lines = [
        "Message sent successfully.",
        f"  ID:     {status.message_id or '?'}",
        f"  Status: {status.status or 'unknown'}",
    ]
    for recipient in status.recipients:
        lines.append(f"  -> {recipient.address}: {recipient.status}")
    return "\n".join(lines)


def format_setup(result: dict[str, Any]) -> str:
    return "\n".join(
        [
            "Agent registered successfully.",
            f"  Address: {result.get('agent_address') or '(not returned)'}",
            f"  Config saved to: {result.get('config_file')}",
            "",
            "You can now send and receive messages.",
        ]
    )


def format_whoami(result: dict[str, Any]) -> str:
    rows = (
        ("Gateway URL:", "gatewayUrl"),
        ("Agent Name:", "agentName"),
        ("Agent Address:", "agentAddress"),
        ("API Key:", "apiKey"),
        ("Admin Key:", "adminKey"),
        ("Config File:", "configFile"),
    )
    lines = ["AMTP Configuration:"]
    for label, key in rows:
        lines.append(f"  {label:<16} {result.get(key) or '(not set)'}")
    return "\n".join(lines)


_RENDERERS: dict[str, Callable[[CommandOutcome], str]] = {
    "setup": lambda outcome: format_setup(outcome.result),
    "send": lambda outcome: format_sent_message(outcome.result),
    "inbox": lambda outcome: format_inbox(outcome.result),
    "ack": lambda outcome: f"Message {outcome.context['message_id']} acknowledged.",
    "discover": lambda outcome: format_agents(outcome.result),
    "status": lambda outcome: format_status(outcome.result),
    "unregister": lambda outcome: (
        f'Agent "{outcome.context["agent_name"]}" removed from gateway.'
    ),
    "whoami": lambda outcome: format_whoami(outcome.result),
}


def render(outcome: CommandOutcome) -> str:
    return _RENDERERS[outcome.command](outcome)
