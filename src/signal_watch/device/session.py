"""HTTP session against the ZTE MF283+ web API.

Endpoints:
  POST /goform/goform_set_cmd_process  goformId=LOGIN   authenticate
  POST /goform/goform_set_cmd_process  goformId=SYSLOG  enable syslog streaming
  GET  /messages                                        syslog text
"""

from __future__ import annotations

import base64
import logging

import httpx

from signal_watch.config.schema import RouterConfig

logger = logging.getLogger(__name__)

_SET_CMD_PROCESS = "/goform/goform_set_cmd_process"
_MESSAGES = "/messages"
_INDEX_PAGE = "/index.html"

LOGIN_SUCCESS = '{"result":"0"}'
# Any genuine login reply is a short JSON object.
_MAX_LOGIN_RESPONSE_BYTES = 20


class SessionError(Exception):
    """Base class for router session failures."""


class TransportFailure(SessionError):
    """Network-level failure: timeout, refused connection, DNS."""


class UnexpectedResponse(SessionError):
    """The device answered, but not like an MF283+ would."""


class AuthRejected(SessionError):
    """The router rejected the password."""


class SessionExpired(SessionError):
    """The router served its login page instead of the log."""


def encode_password(password: str) -> str:
    """Encode a plaintext password the way the router's web UI does (Base64)."""
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


class SessionClient:
    """Talks to one router over its local web API.

    Holds the credential only in its Base64 transport form. Uses an httpx
    async client; each call is bounded by the configured timeouts.
    """

    def __init__(
        self,
        address: str,
        credential: str,
        client: httpx.AsyncClient | None = None,
        connect_timeout: float = 30.0,
        timeout: float = 30.0,
    ) -> None:
        self._address = address
        self._credential = credential
        self._base_url = f"http://{address}"
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
        )
        self._owns_client = client is None
        self._headers = {"Referer": f"{self._base_url}{_INDEX_PAGE}"}

    @classmethod
    def from_config(cls, config: RouterConfig, client: httpx.AsyncClient | None = None) -> SessionClient:
        return cls(
            address=config.address,
            credential=encode_password(config.password),
            client=client,
            connect_timeout=config.connect_timeout_seconds,
            timeout=config.timeout_seconds,
        )

    @property
    def address(self) -> str:
        return self._address

    async def login(self) -> None:
        """Authenticate against the router.

        Raises:
            TransportFailure: the request did not complete.
            UnexpectedResponse: the reply is not a short JSON object.
            AuthRejected: the router refused the password.
        """
        body = await self._post(
            {"isTest": "false", "goformId": "LOGIN", "password": self._credential}
        )
        if (
            not body
            or len(body.encode("utf-8")) >= _MAX_LOGIN_RESPONSE_BYTES
            or not body.startswith("{")
        ):
            logger.warning("Unexpected login response from %s: %r", self._address, body[:80])
            raise UnexpectedResponse(
                f"Unexpected login response from {self._address}; probably not a ZTE MF283+"
            )
        if body != LOGIN_SUCCESS:
            raise AuthRejected(f"Router at {self._address} rejected the password")
        logger.info("Logged in to router at %s", self._address)

    async def fetch_log(self) -> str:
        """Enable syslog streaming and return the current log text.

        Raises:
            TransportFailure: either request did not complete.
            SessionExpired: the router served an HTML page instead of the log.
        """
        await self._post(
            {
                "isTest": "false",
                "goformId": "SYSLOG",
                "syslog_flag": "open",
                "syslog_mode": "wan_connect",
            }
        )
        try:
            resp = await self._client.get(f"{self._base_url}{_MESSAGES}", headers=self._headers)
        except httpx.HTTPError as e:
            raise TransportFailure(f"GET {_MESSAGES} failed: {e}") from e

        text = resp.text
        if text.startswith("<"):
            raise SessionExpired(f"Session on {self._address} expired")
        return text

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, form: dict[str, str]) -> str:
        try:
            resp = await self._client.post(
                f"{self._base_url}{_SET_CMD_PROCESS}",
                data=form,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise TransportFailure(
                f"POST {_SET_CMD_PROCESS} ({form.get('goformId')}) failed: {e}"
            ) from e
        return resp.text
