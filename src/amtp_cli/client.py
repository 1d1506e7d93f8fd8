"""Typed client for AMTP gateway endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from amtp_cli.errors import AmtpError, GatewayUnavailableError
from amtp_cli.models import DELIVERY_MODE_PULL

if TYPE_CHECKING:
    from amtp_cli.cli.config import AgentConfig

logger = logging.getLogger(__name__)

AuthMode = Literal["admin", "agent", "none"]

_OMITTED: Any = object()


def _segment(value: str) -> str:
    return quote(str(value), safe="")


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of one gateway exchange: either a decoded value or an AmtpError."""

    value: Any = None
    error: AmtpError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


@dataclass
class GatewayClient:
    base_url: str
    api_key: str | None = None
    admin_key: str | None = None
    agent_address: str | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        self._session = requests.Session()
        # A single attempt per call; failures are reported, never replayed.
        adapter = HTTPAdapter(max_retries=Retry(total=0, read=False, raise_on_status=False))
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    @classmethod
    def from_config(cls, config: AgentConfig) -> GatewayClient:
        return cls(
            base_url=config.gateway_url,
            api_key=config.api_key or None,
            admin_key=config.admin_key or None,
            agent_address=config.agent_address or None,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self, auth: AuthMode) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if auth == "admin":
            headers["X-Admin-Key"] = self.admin_key or ""
        elif auth == "agent":
            headers["Authorization"] = f"Bearer {self.api_key or ''}"
        return headers

    def _exchange(
        self,
        method: str,
        path: str,
        *,
        auth: AuthMode = "none",
        json_payload: dict | None = None,
    ) -> GatewayResult:
        url = self._url(path)
        logger.debug("%s %s (auth=%s)", method, url, auth)
        try:
            response = self._session.request(
                method,
                url,
                json=json_payload,
                headers=self._headers(auth),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            refused = isinstance(exc, requests.ConnectionError) and not isinstance(
                exc, requests.Timeout
            )
            raise GatewayUnavailableError(
                str(exc),
                gateway_url=self.base_url,
                connection_refused=refused,
            ) from exc

        status_code = response.status_code
        content_type = response.headers.get("content-type", "") or ""
        is_json = "application/json" in content_type.lower()
        logger.debug("%s %s -> %s (%s)", method, url, status_code, content_type or "no content")

        if not 200 <= status_code < 300:
            body: object | None = None
            if is_json:
                try:
                    body = response.json()
                except ValueError:
                    body = None
            return GatewayResult(error=AmtpError.from_response(status_code, body))

        if status_code == 204 or not is_json:
            return GatewayResult(value=response.text or "")

        try:
            return GatewayResult(value=response.json())
        except ValueError:
            logger.debug("success body declared JSON but did not decode; returning text")
            return GatewayResult(value=response.text or "")

    def _request(
        self,
        method: str,
        path: str,
        *,
        auth: AuthMode = "none",
        json_payload: dict | None = None,
    ) -> Any:
        return self._exchange(method, path, auth=auth, json_payload=json_payload).unwrap()

    def register_agent(self, name: str) -> Any:
        return self._request(
            "POST",
            "/v1/admin/agents",
            auth="admin",
            json_payload={"address": name, "delivery_mode": DELIVERY_MODE_PULL},
        )

    def unregister_agent(self, name: str) -> Any:
        return self._request("DELETE", f"/v1/admin/agents/{_segment(name)}", auth="admin")

    def send_message(
        self,
        to: str | list[str],
        *,
        subject: str | None = None,
        payload: Any = _OMITTED,
    ) -> Any:
        recipients = list(to) if isinstance(to, (list, tuple)) else [to]
        body: dict[str, Any] = {
            "sender": self.agent_address or "",
            "recipients": recipients,
        }
        if subject:
            body["subject"] = subject
        if payload is not _OMITTED:
            body["payload"] = payload
        return self._request("POST", "/v1/messages", json_payload=body)

    def get_inbox(self) -> Any:
        return self._request("GET", f"/v1/inbox/{_segment(self.agent_address or '')}", auth="agent")

    def ack_message(self, message_id: str) -> Any:
        return self._request(
            "DELETE",
            f"/v1/inbox/{_segment(self.agent_address or '')}/{_segment(message_id)}",
            auth="agent",
        )

    def get_message_status(self, message_id: str) -> Any:
        return self._request("GET", f"/v1/messages/{_segment(message_id)}/status")

    def discover_agents(self, domain: str | None = None) -> Any:
        path = f"/v1/discovery/agents/{_segment(domain)}" if domain else "/v1/discovery/agents"
        return self._request("GET", path)


__all__ = ["GatewayClient", "GatewayResult"]
