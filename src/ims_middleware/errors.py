"""
Exceptions raised by the IMS client and the UAA token provider.

Only infrastructure failures are exceptions: a token that could not be
obtained, or a host that could not be reached. Any HTTP status code returned
by IMS itself is handed back to the caller as data (see ``dispatcher.Result``).
"""

from typing import Optional


class IMSError(Exception):
    """Base class for every error raised by this package."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, "
            f"url={self.url!r}, status_code={self.status_code!r})"
        )


class AuthenticationError(IMSError):
    """
    The UAA refused to issue a token.

    Usually a 401, meaning the client id or secret is wrong. ``status_code``
    carries whatever the UAA answered.
    """

    def __init__(self, status_code: Optional[int], *, url: Optional[str] = None, description: str = ""):
        message = f"Error getting token: {status_code}"
        if description:
            message = f"{message} ({description})"
        super().__init__(message, url=url, status_code=status_code)


class TransportError(IMSError):
    """The target host could not be reached or the URL is not valid."""

    def __init__(self, url: str, reason: str = ""):
        message = f'Invalid URI "{url}"'
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, url=url)


__all__ = ["IMSError", "AuthenticationError", "TransportError"]
