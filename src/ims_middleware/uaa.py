"""
UAA token provider.

Wraps the OAuth2 client-credentials exchange against a Predix UAA token
endpoint so the credentials can be captured once and a token fetched
whenever one is needed.

Tokens are deliberately not cached: every call to ``get_token()`` performs a
fresh round trip to the UAA.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import AuthenticationError, TransportError

logger = logging.getLogger(__name__)

# Predix US West UAA instances live under this host suffix
UAA_URL_TAIL = ".predix-uaa.run.aws-usw02-pr.ice.predix.io/oauth/token"


def uaa_url_for_instance(instance_id: str) -> str:
    """Build the token endpoint URL of a Predix US West UAA instance."""
    return f"https://{instance_id}{UAA_URL_TAIL}"


class UAA:
    """
    Encapsulates the credentials of a UAA client.

    Example:
        uaa = UAA(
            "https://36b12345-51eb-4b74-bef9-ea2f029fa7ee.predix-uaa.run.aws-usw02-pr.ice.predix.io/oauth/token",
            "clientId",
            "clientSecret",
        )
        token = await uaa.get_token()
        token["access_token"]
    """

    def __init__(
        self,
        url: str,
        client_id: str,
        client_secret: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the token provider.

        Args:
            url: Token endpoint of the UAA (.../oauth/token)
            client_id: OAuth2 client ID
            client_secret: OAuth2 client secret
            timeout: Timeout in seconds for the token request
            client: Optional shared httpx client; when omitted a short-lived
                client is opened for every token request
        """
        self.url = url
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_instance_id(cls, instance_id: str, client_id: str, client_secret: str, **kwargs) -> "UAA":
        """Create a provider for a UAA instance identified by its instance id."""
        return cls(uaa_url_for_instance(instance_id), client_id, client_secret, **kwargs)

    def __repr__(self) -> str:
        # Never expose the secret
        return f"UAA(url={self.url!r}, client_id={self.client_id!r})"

    async def get_token(self) -> Dict[str, Any]:
        """
        Fetch a new token using the client-credentials grant.

        Returns:
            The token document returned by the UAA. The bearer token is
            ``token["access_token"]``.

        Raises:
            AuthenticationError: The UAA rejected the request (e.g. 401 for a
                bad client id or secret) or did not return a token.
            TransportError: The UAA URL is malformed or unreachable.
        """
        logger.debug(f"Requesting client-credentials token from {self.url}")

        if self._client is not None:
            response = await self._request_token(self._client)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await self._request_token(client)

        return self._parse_token_response(response)

    async def _request_token(self, client: httpx.AsyncClient) -> httpx.Response:
        try:
            return await client.post(
                self.url,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                headers={"Accept": "application/json"},
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"UAA unreachable at {self.url}: {e}")
            raise TransportError(self.url, str(e)) from e

    def _parse_token_response(self, response: httpx.Response) -> Dict[str, Any]:
        if response.is_error:
            logger.warning(f"UAA returned {response.status_code} for client {self.client_id}")
            raise AuthenticationError(
                response.status_code,
                url=self.url,
                description=_error_description(response),
            )

        try:
            token = response.json()
        except ValueError:
            raise AuthenticationError(
                response.status_code,
                url=self.url,
                description="token response is not JSON",
            )

        if not isinstance(token, dict) or not token.get("access_token"):
            description = "no access_token in response"
            if isinstance(token, dict) and token.get("error"):
                description = token.get("error_description") or token["error"]
            raise AuthenticationError(response.status_code, url=self.url, description=description)

        return token


def _error_description(response: httpx.Response) -> str:
    """Pull the OAuth2 error description out of an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return body.get("error_description") or body.get("error") or ""
    return ""
