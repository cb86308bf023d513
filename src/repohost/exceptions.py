"""Exceptions raised by repohost.

Every condition a caller may need to tell apart has its own class; all of
them derive from HostingError so callers can catch the whole family.
"""

from http import HTTPStatus


class HostingError(Exception):
    """Raised when a request against a hosting provider fails.

    Wraps httpx transport errors for consistent error handling.
    """

    pass


class NotAuthenticated(HostingError):
    """Raised on a 401 for an operation that requires an identity."""

    def __init__(self, message: str = "Current User is not authenticated."):
        super().__init__(message)


class UnexpectedStatus(HostingError):
    """Raised when a provider answers with a status the operation does not accept.

    Attributes:
        uri: The requested URI
        expected: Accepted status code(s)
        actual: Status code actually received
    """

    def __init__(
        self,
        what: str,
        uri: str,
        actual: int,
        expected: int | tuple[int, ...] = 200,
    ):
        self.uri = uri
        self.actual = actual
        self.expected = expected if isinstance(expected, tuple) else (expected,)
        super().__init__(
            f"{what} [{uri}]. Expected {_describe(self.expected)}, but got: {actual}"
        )


class UnsupportedOperation(HostingError, NotImplementedError):
    """Raised when a provider cannot perform the requested action at all."""

    pass


class MalformedPayload(HostingError, ValueError):
    """Raised when a required field is missing from a provider's JSON payload."""

    pass


def _describe(codes: tuple[int, ...]) -> str:
    """Render status codes the way messages show them: '201 CREATED or 200 OK'."""
    rendered = []
    for code in codes:
        try:
            phrase = HTTPStatus(code).phrase.upper()
        except ValueError:
            rendered.append(str(code))
            continue
        rendered.append(f"{code} {phrase}")
    return " or ".join(rendered)
