"""AMTP client SDK public surface."""

from amtp_cli.client import GatewayClient, GatewayResult
from amtp_cli.errors import (
    AmtpError,
    AmtpSDKError,
    ConfigurationError,
    GatewayUnavailableError,
    ValidationError,
)
from amtp_cli.models import (
    Agent,
    AgentDirectory,
    DeliveryStatus,
    Inbox,
    InboxMessage,
    RecipientStatus,
    parse_error_body,
)

__all__ = [
    "AmtpSDKError",
    "AmtpError",
    "ConfigurationError",
    "ValidationError",
    "GatewayUnavailableError",
    "GatewayClient",
    "GatewayResult",
    "Agent",
    "AgentDirectory",
    "Inbox",
    "InboxMessage",
    "DeliveryStatus",
    "RecipientStatus",
    "parse_error_body",
]
