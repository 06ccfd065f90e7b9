"""Tests for the Prisma Cloud client and compliance collector."""

import json

import httpx
import pytest

from cloudsec_metrics.errors import (
    AuthenticationError,
    BadRequestError,
    BodyReadError,
    DecodeError,
    LoginError,
    ServerError,
    TransportError,
    UnexpectedStatusError,
)
from cloudsec_metrics.prisma import (
    ComplianceInfo,
    PrismaClient,
    PrismaCollector,
    TokenState,
)
from cloudsec_metrics.prisma.client import AUTH_HEADER, TOKEN_RENEW_INTERVAL

PASSWORD = "s3cr3t-password"


def _exception_chain(error: BaseException) -> list[BaseException]:
    chain = []
    while error is not None:
        chain.append(error)
        error = error.__cause__
    return chain


class FailingStream(httpx.AsyncByteStream):
    """Response stream failing after the status line was received."""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


class FakePrisma:
    """Request handler emulating the Prisma login and extend endpoints."""

    def __init__(self, api_status: int = 200, api_body: bytes = b"ok") -> None:
        self.api_status = api_status
        self.api_body = api_body
        self.login_status = 200
        self.extend_status = 200
        self.extend_body: bytes | None = None
        self.issued = 0
        self.calls: list[httpx.Request] = []

    def paths(self) -> list[str]:
        return [r.url.path for r in self.calls]

    def _new_token(self) -> bytes:
        self.issued += 1
        return json.dumps({"token": f"token-{self.issued}"}).encode()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path == "/login":
            if self.login_status != 200:
                return httpx.Response(self.login_status, content=b"invalid credentials")
            return httpx.Response(200, content=self._new_token())
        if request.url.path == "/auth_token/extend":
            if self.extend_status != 200:
                return httpx.Response(self.extend_status, content=b"token expired")
            return httpx.Response(200, content=self.extend_body or self._new_token())
        return httpx.Response(self.api_status, content=self.api_body)


@pytest.fixture
def prisma():
    """Provide a fake Prisma API."""
    return FakePrisma()


@pytest.fixture
def client(prisma, mock_http, clock):
    """Provide a Prisma client talking to the fake API."""
    return PrismaClient(
        login="test-user",
        password=PASSWORD,
        api_url="https://prisma.test/",
        http_client=mock_http(prisma),
        clock=clock,
    )


class TestModels:
    """Tests for Prisma data models."""

    def test_compliance_info_keeps_server_total(self):
        """Test the total comes from the server even when it disagrees."""
        info = ComplianceInfo.model_validate(
            {
                "name": "x",
                "passedResources": 69,
                "failedResources": 99,
                "totalResources": 200,
            }
        )

        assert info.total_assets_count == 200
        assert info.policies_count == 0
        assert info.description == ""


class TestResponseClassification:
    """Tests for HTTP status classification."""

    @pytest.mark.asyncio
    async def test_ok_returns_body_verbatim(self, client, prisma):
        """Test a 200 response returns the raw body."""
        prisma.api_body = b"one, two, three"

        assert await client.request("POST", "/anything", {"a": 1}) == b"one, two, three"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error_type", "message"),
        [
            (401, AuthenticationError, "authentication error on request"),
            (400, BadRequestError, "bad request parameters"),
            (500, ServerError, "server internal error"),
            (404, UnexpectedStatusError, "404 Not Found"),
        ],
    )
    async def test_error_statuses(self, client, prisma, status, error_type, message):
        """Test non-200 statuses map to typed errors carrying the body."""
        prisma.api_status = status
        prisma.api_body = b"details from server"

        with pytest.raises(error_type) as exc_info:
            await client.request("GET", "/compliance")

        assert message in str(exc_info.value)
        assert "details from server" in str(exc_info.value)
        assert exc_info.value.status_code == status
        assert exc_info.value.body == "details from server"
        assert PASSWORD not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_http, clock):
        """Test connection failures are reported before any classification."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = PrismaClient("test-user", PASSWORD, "https://prisma.test", mock_http(handler), clock)

        with pytest.raises(LoginError) as exc_info:
            await client.request("GET", "/check")

        assert isinstance(exc_info.value.__cause__, TransportError)
        assert "test-user" in str(exc_info.value)
        for error in _exception_chain(exc_info.value):
            assert PASSWORD not in str(error)

    @pytest.mark.asyncio
    async def test_malformed_url(self, clock):
        """Test a malformed API URL is a transport error."""
        client = PrismaClient("test-user", PASSWORD, "http://[::1]:namedport", clock=clock)

        with pytest.raises(LoginError) as exc_info:
            await client.connect()

        assert isinstance(exc_info.value.__cause__, TransportError)

    @pytest.mark.asyncio
    async def test_body_read_error(self, mock_http, clock):
        """Test a failure while reading the body is a BodyReadError."""

        def handler(request):
            if request.url.path == "/login":
                return httpx.Response(200, json={"token": "token-1"})
            return httpx.Response(200, stream=FailingStream())

        client = PrismaClient("test-user", PASSWORD, "https://prisma.test", mock_http(handler), clock)

        with pytest.raises(BodyReadError):
            await client.request("GET", "/check")


class TestTokenLifecycle:
    """Tests for login, renewal and re-login."""

    @pytest.mark.asyncio
    async def test_lazy_login(self, client, prisma):
        """Test the first request logs in and attaches the token."""
        assert client.token_state is TokenState.NO_TOKEN

        await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/check"]
        assert json.loads(prisma.calls[0].content) == {
            "username": "test-user",
            "password": PASSWORD,
        }
        assert AUTH_HEADER not in prisma.calls[0].headers
        assert prisma.calls[1].headers[AUTH_HEADER] == "token-1"
        assert prisma.calls[1].headers["Content-Type"] == "application/json"
        assert client.token_state is TokenState.VALID

    @pytest.mark.asyncio
    async def test_valid_token_is_reused(self, client, prisma, clock):
        """Test no renewal happens within the renewal interval."""
        await client.request("GET", "/check")
        clock.advance(TOKEN_RENEW_INTERVAL - 1)

        await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/check", "/check"]

    @pytest.mark.asyncio
    async def test_stale_token_is_extended_once(self, client, prisma, clock):
        """Test a stale token triggers exactly one extend before the request."""
        await client.connect()
        clock.advance(TOKEN_RENEW_INTERVAL + 1)
        assert client.token_state is TokenState.STALE

        await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/auth_token/extend", "/check"]
        assert prisma.calls[1].headers[AUTH_HEADER] == "token-1"
        assert prisma.calls[2].headers[AUTH_HEADER] == "token-2"
        assert client.token_state is TokenState.VALID

    @pytest.mark.asyncio
    async def test_failed_extend_falls_back_to_login(self, client, prisma, clock):
        """Test a rejected extend is followed by one fresh login."""
        await client.connect()
        clock.advance(TOKEN_RENEW_INTERVAL + 1)
        prisma.extend_status = 401

        await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/auth_token/extend", "/login", "/check"]
        assert client.token == "token-2"
        assert client.token_state is TokenState.VALID

    @pytest.mark.asyncio
    async def test_undecodable_extend_falls_back_to_login(self, client, prisma, clock):
        """Test an extend answer without a token is followed by a login."""
        await client.connect()
        clock.advance(TOKEN_RENEW_INTERVAL + 1)
        prisma.extend_body = b"not_json"

        await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/auth_token/extend", "/login", "/check"]
        assert client.token == "token-2"

    @pytest.mark.asyncio
    async def test_failed_extend_and_login(self, client, prisma, clock):
        """Test both renewal legs failing raises without exposing the password."""
        await client.connect()
        clock.advance(TOKEN_RENEW_INTERVAL + 1)
        prisma.extend_status = 500
        prisma.login_status = 401

        with pytest.raises(LoginError) as exc_info:
            await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/auth_token/extend", "/login"]
        assert exc_info.value.login == "test-user"
        assert isinstance(exc_info.value.__cause__, AuthenticationError)
        for error in _exception_chain(exc_info.value):
            assert PASSWORD not in str(error)
            assert PASSWORD not in repr(error)
        assert client.token_state is TokenState.NO_TOKEN

    @pytest.mark.asyncio
    async def test_login_without_token_in_response(self, mock_http, clock):
        """Test a login answer that is not a token document."""

        def handler(request):
            return httpx.Response(200, content=b"not_json")

        client = PrismaClient("test-user", PASSWORD, "https://prisma.test", mock_http(handler), clock)

        with pytest.raises(LoginError) as exc_info:
            await client.connect()

        assert isinstance(exc_info.value.__cause__, DecodeError)
        assert client.token_state is TokenState.NO_TOKEN

    @pytest.mark.asyncio
    async def test_login_is_retried_on_next_request(self, client, prisma):
        """Test a failed login does not block later login attempts."""
        prisma.login_status = 500
        with pytest.raises(LoginError):
            await client.request("GET", "/check")

        prisma.login_status = 200
        await client.request("GET", "/check")

        assert prisma.paths() == ["/login", "/login", "/check"]


class TestRedirects:
    """Tests for redirected API calls."""

    @pytest.mark.asyncio
    async def test_redirect_is_followed(self, mock_http, clock):
        """Test a redirected request returns the final response body."""

        def handler(request):
            if request.url.path == "/login":
                return httpx.Response(200, json={"token": "token-1"})
            if request.url.path == "/old-check":
                return httpx.Response(302, headers={"Location": "https://prisma.test/check"})
            return httpx.Response(200, content=b"healthy")

        client = PrismaClient("test-user", PASSWORD, "https://prisma.test", mock_http(handler), clock)

        assert await client.request("GET", "/old-check") == b"healthy"


class TestPrismaCollector:
    """Tests for PrismaCollector."""

    @pytest.mark.asyncio
    async def test_gather_compliance_info(self, client, prisma):
        """Test the posture document is unwrapped."""
        prisma.api_body = json.dumps(
            {
                "complianceDetails": [
                    {
                        "name": "x",
                        "passedResources": 69,
                        "failedResources": 99,
                        "totalResources": 168,
                    },
                    {
                        "name": "CIS v1.2.0 (AWS)",
                        "description": "CIS benchmark",
                        "assignedPolicies": 43,
                        "passedResources": 10,
                        "failedResources": 5,
                        "totalResources": 16,
                    },
                ]
            }
        ).encode()

        result = await PrismaCollector(client).gather_compliance_info()

        assert len(result) == 2
        assert result[0].name == "x"
        assert result[0].total_assets_count == 168
        assert result[1].policies_count == 43
        assert result[1].total_assets_count == 16
        assert prisma.calls[-1].url.path == "/v2/compliance/posture"
        assert prisma.calls[-1].url.params["timeUnit"] == "day"

    @pytest.mark.asyncio
    async def test_gather_compliance_info_decode_error(self, client, prisma):
        """Test an unexpected document shape is a DecodeError."""
        prisma.api_body = b'[{"name": "x"}]'

        with pytest.raises(DecodeError):
            await PrismaCollector(client).gather_compliance_info()

    @pytest.mark.asyncio
    async def test_gather_compliance_info_request_error(self, client, prisma):
        """Test request failures are not reported as decode errors."""
        prisma.api_status = 401

        with pytest.raises(AuthenticationError):
            await PrismaCollector(client).gather_compliance_info()

    @pytest.mark.asyncio
    async def test_api_health_status(self, client, prisma):
        """Test the health probe maps success to 1 and any error to 0."""
        collector = PrismaCollector(client)

        assert await collector.get_api_health_status() == 1
        assert prisma.calls[-1].url.path == "/check"

        prisma.api_status = 503
        assert await collector.get_api_health_status() == 0
