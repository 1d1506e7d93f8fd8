"""AMTP wire models (gateway JSON bodies)."""

from __future__ import annotations

from typing import Any, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

DELIVERY_MODE_PULL = "pull"

ModelT = TypeVar("ModelT", bound=BaseModel)


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


def lenient_validate(model: type[ModelT], data: object) -> ModelT:
    """Validate ``data`` field by field; a field that does not fit is dropped alone."""
    if not isinstance(data, dict):
        return model()
    try:
        return model.model_validate(data)
    except PydanticValidationError:
        pass
    kept: dict[str, Any] = {}
    for key, value in data.items():
        try:
            model.model_validate({key: value})
        except PydanticValidationError:
            continue
        kept[key] = value
    return model.model_validate(kept)


def _items(model: type[ModelT], raw: object) -> list[ModelT]:
    if not isinstance(raw, list):
        return []
    return [lenient_validate(model, item) for item in raw if isinstance(item, dict)]


class ErrorDetail(_WireModel):
    code: Optional[str] = None
    message: Optional[str] = None
    details: Any = None


def parse_error_body(body: object | None) -> ErrorDetail:
    """Extract ``error.{code,message,details}``; fields that are missing or malformed read as empty."""
    if not isinstance(body, dict):
        return ErrorDetail()
    return lenient_validate(ErrorDetail, body.get("error"))


class Agent(_WireModel):
    address: Optional[str] = None
    name: Optional[str] = None
    delivery_mode: Optional[str] = None
    supported_schemas: Optional[List[str]] = None
    api_key: Optional[str] = None


class AgentDirectory(_WireModel):
    agents: List[Agent] = Field(default_factory=list)

    @classmethod
    def from_response(cls, response: object) -> AgentDirectory:
        # Canonical shape is {"agents": [...]}; some gateways answer with the bare list.
        raw_agents = response.get("agents") if isinstance(response, dict) else response
        return cls(agents=_items(Agent, raw_agents))


class InboxMessage(_WireModel):
    message_id: Optional[str] = None
    sender: Optional[str] = None
    subject: Optional[str] = None
    timestamp: Optional[str] = None
    payload: Any = None


class Inbox(_WireModel):
    recipient: Optional[str] = None
    count: Optional[int] = None
    messages: List[InboxMessage] = Field(default_factory=list)

    @classmethod
    def from_response(cls, response: object) -> Inbox:
        if not isinstance(response, dict):
            return cls()
        messages = _items(InboxMessage, response.get("messages"))
        return lenient_validate(cls, {**response, "messages": messages})


class RecipientStatus(_WireModel):
    address: Optional[str] = None
    status: Optional[str] = None
    delivery_mode: Optional[str] = None
    acknowledged: Optional[bool] = None
    error_message: Optional[str] = None


class DeliveryStatus(_WireModel):
    message_id: Optional[str] = None
    id: Optional[str] = None
    status: Optional[str] = None
    recipients: List[RecipientStatus] = Field(default_factory=list)

    @classmethod
    def from_response(cls, response: object) -> DeliveryStatus:
        if not isinstance(response, dict):
            return cls()
        recipients = _items(RecipientStatus, response.get("recipients"))
        return lenient_validate(cls, {**response, "recipients": recipients})


__all__ = [
    "DELIVERY_MODE_PULL",
    "ErrorDetail",
    "lenient_validate",
    "parse_error_body",
    "Agent",
    "AgentDirectory",
    "InboxMessage",
    "Inbox",
    "RecipientStatus",
    "DeliveryStatus",
]
