from __future__ import annotations

from amtp_cli.cli.formatter import (
    format_agents,
    format_inbox,
    format_sent_message,
    format_status,
    format_timestamp,
    format_whoami,
)


def test_empty_inbox() -> None:
    assert format_inbox({"recipient": "bot-1@gw", "count": 0, "messages": []}) == "Inbox is empty."
    assert format_inbox("") == "Inbox is empty."


def test_inbox_lists_messages() -> None:
    text = format_inbox(
        {
            "recipient": "bot-1@gw",
            "count": 1,
            "messages": [
                {
                    "message_id": "m-1",
                    "sender": "peer@gw",
                    "subject": "hello",
                    "timestamp": "2026-01-02T03:04:05Z",
                    "payload": {"text": "hi"},
                }
            ],
        }
    )
    assert text.startswith("Inbox for bot-1@gw (1 message):")
    assert "  1. [m-1]" in text
    assert "     From:    peer@gw" in text
    assert "     Subject: hello" in text
    assert "     Time:    2026-01-02 03:04:05 UTC" in text
    assert '     Payload: {"text": "hi"}' in text


def test_agents_accepts_object_or_bare_list() -> None:
    agents = [
        {"address": "a@gw", "delivery_mode": "pull", "supported_schemas": ["x.v1", "y.v2"]},
        {"name": "b"},
    ]
    from_object = format_agents({"agents": agents})
    from_list = format_agents(agents)

    assert from_object == from_list
    assert from_object.startswith("Discovered 2 agents:")
    assert "  - a@gw  (pull) schemas=[x.v1, y.v2]" in from_object
    assert "  - b  (?)" in from_object


def test_no_agents() -> None:
    assert format_agents({"agents": []}) == "No agents found."
    assert format_agents(None) == "No agents found."


def test_status_lists_recipients() -> None:
    text = format_status(
        {
            "message_id": "m-1",
            "status": "delivered",
            "recipients": [
                {"address": "a@gw", "status": "delivered", "delivery_mode": "pull", "acknowledged": True},
                {"address": "b@gw", "status": "failed", "error_message": "unknown agent"},
            ],
        }
    )
    assert text.splitlines()[0] == "Message m-1:"
    assert "  Status: delivered" in text
    assert "    - a@gw: delivered (pull) [ACK]" in text
    assert "    - b@gw: failed error: unknown agent" in text


def test_sent_message() -> None:
    text = format_sent_message(
        {"message_id": "m-9", "status": "queued", "recipients": [{"address": "a@gw", "status": "queued"}]}
    )
    assert text.splitlines() == [
        "Message sent successfully.",
        "  ID:     m-9",
        "  Status: queued",
        "  -> a@gw: queued",
    ]


def test_whoami_marks_unset_values() -> None:
    text = format_whoami({"gatewayUrl": "http://gw", "apiKey": "", "configFile": "/tmp/x.json"})
    assert "  Gateway URL:     http://gw" in text
    assert "  API Key:         (not set)" in text
    assert "  Config File:     /tmp/x.json" in text


def test_unparseable_timestamp_is_shown_verbatim() -> None:
    assert format_timestamp("yesterday") == "yesterday"
    assert format_timestamp(None) == ""


def test_inbox_with_epoch_timestamp_still_lists_message() -> None:
    text = format_inbox(
        {
            "recipient": "bot@gw",
            "count": 1,
            "messages": [{"message_id": "m1", "sender": "a@gw", "timestamp": 1700000000}],
        }
    )
    assert text.startswith("Inbox for bot@gw (1 message):")
    assert "  1. [m1]" in text
    assert "     Time:    2023-11-14 22:13:20 UTC" in text


def test_inbox_skips_only_unusable_fields() -> None:
    text = format_inbox(
        {
            "recipient": "bot@gw",
            "count": "many",
            "messages": [
                {"message_id": 7, "sender": "a@gw", "subject": ["x"]},
                "not-a-message",
            ],
        }
    )
    assert text.startswith("Inbox for bot@gw (1 message):")
    assert "  1. [7]" in text
    assert "Subject:" not in text


def test_status_with_numeric_message_id_keeps_recipients() -> None:
    text = format_status(
        {
            "message_id": 42,
            "status": "delivered",
            "recipients": [
                {"address": "a@gw", "status": "ok"},
                {"address": "b@gw", "status": "queued", "acknowledged": "later"},
            ],
        }
    )
    assert text.splitlines()[0] == "Message 42:"
    assert "    - a@gw: ok" in text
    assert "    - b@gw: queued" in text


def test_millisecond_epoch_timestamp() -> None:
    assert format_timestamp("1700000000000") == "2023-11-14 22:13:20 UTC"
