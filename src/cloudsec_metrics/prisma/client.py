"""Authenticated Prisma Cloud API client."""

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from cloudsec_metrics.errors import (
    AuthenticationError,
    BadRequestError,
    BodyReadError,
    CloudsecMetricsError,
    DecodeError,
    LoginError,
    ServerError,
    TransportError,
    UnexpectedStatusError,
)
from cloudsec_metrics.prisma.models import TokenResponse

logger = logging.getLogger(__name__)

# The token is invalidated after 10 minutes, past that a complete login is
# required. Renewing after 3 minutes leaves room for a failed extend.
TOKEN_RENEW_INTERVAL = 3 * 60

REQUEST_TIMEOUT = 5.0

AUTH_HEADER = "x-redlock-auth"


class TokenState(str, Enum):
    """Lifecycle of the auth token held by the client."""

    NO_TOKEN = "no_token"
    VALID = "valid"
    STALE = "stale"


class PrismaClient:
    """Client making authenticated calls to the Palo Alto Prisma Cloud API.

    The client logs in lazily on the first request and keeps the returned
    token. Once the token is older than ``TOKEN_RENEW_INTERVAL`` it is
    extended before the next request; when the extend fails the token is
    dropped and a full login is tried once.

    The client holds mutable token state and is meant to be used from a
    single task.
    """

    def __init__(
        self,
        login: str,
        password: str,
        api_url: str,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
        renew_interval: float = TOKEN_RENEW_INTERVAL,
    ) -> None:
        """Initialize the Prisma client.

        Args:
            login: API access key or user name.
            password: API secret key or password.
            api_url: Base API URL, e.g. https://api.eu.prismacloud.io.
            http_client: Optional HTTP client for testing.
            clock: Monotonic time source, seconds.
            renew_interval: Token age after which it is extended, seconds.
        """
        self._login = login
        self._password = password
        self._api_url = api_url.rstrip("/")
        self._http_client = http_client
        self._clock = clock
        self._renew_interval = renew_interval
        self._token: str | None = None
        self._token_renewed_at: float | None = None

    @property
    def login(self) -> str:
        return self._login

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def token_state(self) -> TokenState:
        """Current token state derived from the token and its age."""
        if not self._token or self._token_renewed_at is None:
            return TokenState.NO_TOKEN
        if self._clock() - self._token_renewed_at > self._renew_interval:
            return TokenState.STALE
        return TokenState.VALID

    async def connect(self) -> None:
        """Log in right away so that bad credentials surface at startup.

        Raises:
            LoginError: If the login fails.
        """
        await self._ensure_token()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
    ) -> bytes:
        """Make an authenticated request and return the response body.

        Args:
            method: HTTP method.
            path: Path relative to the API URL, including the query string.
            body: Optional JSON-serialisable request body.

        Returns:
            Raw body of a 200 response.

        Raises:
            LoginError: If no valid token could be obtained.
            TransportError: If the request could not be sent.
            BodyReadError: If the response body could not be read.
            PrismaAPIError: On any non-200 response.
        """
        await self._ensure_token()
        return await self._send(method, path, body, token=self._token)

    async def _ensure_token(self) -> None:
        """Bring the token to the valid state, extending or logging in."""
        state = self.token_state
        if state is TokenState.VALID:
            return

        if state is TokenState.STALE:
            try:
                await self._extend_token()
                return
            except CloudsecMetricsError as e:
                logger.info("Error extending token, will re-login: %s", e)
                self._token = None
                self._token_renewed_at = None

        await self._full_login()

    async def _full_login(self) -> None:
        """Log in with the credentials and store the issued token.

        https://pan.dev/prisma-cloud/api/cspm/app-login/
        """
        try:
            data = await self._send(
                "POST",
                "/login",
                {"username": self._login, "password": self._password},
            )
            self._store_token(data)
        except CloudsecMetricsError as e:
            raise LoginError(
                f"error logging in with user {self._login!r}: {e}",
                login=self._login,
            ) from e
        logger.debug("Logged in to Prisma API as %s", self._login)

    async def _extend_token(self) -> None:
        """Exchange the current token for a fresh one.

        https://pan.dev/prisma-cloud/api/cspm/extend-session/
        """
        data = await self._send("GET", "/auth_token/extend", token=self._token)
        self._store_token(data)
        logger.debug("Extended Prisma API token")

    def _store_token(self, data: bytes) -> None:
        try:
            response = TokenResponse.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"error obtaining token from response: {e}") from e
        self._token = response.token
        self._token_renewed_at = self._clock()

    async def _send(
        self,
        method: str,
        path: str,
        body: Any = None,
        token: str | None = None,
    ) -> bytes:
        """Send a single request and classify the response status."""
        headers = {"Content-Type": "application/json"}
        if token:
            headers[AUTH_HEADER] = token

        if self._http_client:
            return await self._do_send(self._http_client, method, path, body, headers)
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            return await self._do_send(client, method, path, body, headers)

    async def _do_send(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        body: Any,
        headers: dict[str, str],
    ) -> bytes:
        try:
            request = client.build_request(
                method,
                self._api_url + path,
                json=body,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
            response = await client.send(request, stream=True, follow_redirects=True)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise TransportError(f"error making request: {e}") from e

        try:
            data = await response.aread()
        except httpx.HTTPError as e:
            raise BodyReadError(f"error reading response body: {e}") from e
        finally:
            await response.aclose()

        return _classify_response(response, data)


def _classify_response(response: httpx.Response, data: bytes) -> bytes:
    """Return the body of a 200 response, raise a typed error otherwise."""
    status = response.status_code
    if status == 200:
        return data

    text = data.decode("utf-8", errors="replace")
    if status == 401:
        raise AuthenticationError(
            f"authentication error on request, response body: {text!r}",
            status_code=status,
            body=text,
        )
    if status == 400:
        raise BadRequestError(
            f"bad request parameters, check your request body, response body: {text!r}",
            status_code=status,
            body=text,
        )
    if status == 500:
        raise ServerError(
            f"server internal error during request processing, response body: {text!r}",
            status_code=status,
            body=text,
        )
    raise UnexpectedStatusError(
        f"{status} {response.reason_phrase}, response body: {text!r}",
        status_code=status,
        body=text,
    )
