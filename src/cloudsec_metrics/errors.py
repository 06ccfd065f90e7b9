"""Error types shared by collectors and senders."""


class CloudsecMetricsError(Exception):
    """Base class for all collector and sender errors."""


class ConfigError(CloudsecMetricsError):
    """Invalid configuration detected at startup."""


class TransportError(CloudsecMetricsError):
    """Request could not be sent (DNS, connection refused, malformed URL)."""


class BodyReadError(CloudsecMetricsError):
    """Response status was received but the body could not be read."""


class DecodeError(CloudsecMetricsError):
    """Response body did not have the expected shape."""


class PrismaAPIError(CloudsecMetricsError):
    """Prisma API answered with a non-200 status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(PrismaAPIError):
    """401 response."""


class BadRequestError(PrismaAPIError):
    """400 response."""


class ServerError(PrismaAPIError):
    """500 response."""


class UnexpectedStatusError(PrismaAPIError):
    """Any other non-200 response."""


class LoginError(CloudsecMetricsError):
    """Login or token renewal failed.

    Only the login identifier is ever part of the message, the underlying
    failure is chained as ``__cause__``.
    """

    def __init__(self, message: str, login: str):
        super().__init__(message)
        self.login = login


class CommandCenterError(CloudsecMetricsError):
    """Google Security Command Center API call failed."""
