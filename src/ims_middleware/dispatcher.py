"""
Authenticated request dispatch for the IMS REST API.

Every call fetches a fresh UAA token, attaches it together with the tenant
headers and issues a single HTTP request. Whatever status code IMS answers
with is returned as a ``Result``; only token and transport failures raise.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_IMS_URL = "https://intelligent-mapping-prod.run.aws-usw02-pr.ice.predix.io"
API_VERSION = "v1"


@dataclass(frozen=True)
class Result:
    """Status code and body of a completed IMS call."""
    status_code: int
    body: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status_code, "body": self.body}


def parse_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to text (None when empty)."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class RequestDispatcher:
    """
    Issues authenticated requests against one IMS tenant.

    Args:
        uaa: ``UAA`` instance, or any object with an async ``get_token()``
            returning a mapping that holds ``access_token``
        predix_zone_id: Predix zone id (a UUID)
        subtenant_id: Any string identifying the subtenant
        ims_url: Base URL of the IMS service
        client: Optional httpx client to send requests with. When omitted the
            dispatcher creates one and closes it in ``aclose()``.
        timeout: Timeout in seconds for the client created by the dispatcher
    """

    def __init__(
        self,
        uaa,
        predix_zone_id: str,
        subtenant_id: str,
        ims_url: str = DEFAULT_IMS_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.uaa = uaa
        self.predix_zone_id = predix_zone_id
        self.subtenant_id = subtenant_id
        self.ims_url = (ims_url or DEFAULT_IMS_URL).rstrip('/')
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    def url_for(self, path: str) -> str:
        return f"{self.ims_url}/{API_VERSION}/{path}"

    def headers_for(self, token: Dict[str, Any]) -> Dict[str, str]:
        return {
            "authorization": f"Bearer {token['access_token']}",
            "x-subtenant-id": self.subtenant_id,
            "predix-zone-id": self.predix_zone_id,
        }

    async def dispatch(self, path: str, method: str, body: Any = None) -> Result:
        """
        Make an authenticated request to ``<ims_url>/v1/<path>``.

        Args:
            path: Path below the version prefix, query string included. It is
                used verbatim, so identifiers must already be URL-safe.
            method: HTTP method
            body: JSON-serializable request body, or None for no body

        Returns:
            Result with the status code and decoded body of the response,
            whatever the status code.

        Raises:
            AuthenticationError: No token could be obtained from the UAA.
            TransportError: IMS could not be reached or the URL is malformed.
        """
        # Token failures propagate before anything is sent
        token = await self.uaa.get_token()

        url = self.url_for(path)
        request_kwargs: Dict[str, Any] = {"headers": self.headers_for(token)}
        if body is not None:
            request_kwargs["json"] = body

        logger.debug(f"→ {method} {url}")
        try:
            response = await self.client.request(method, url, **request_kwargs)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"✗ {method} {url} failed: {e}")
            raise TransportError(url, str(e)) from e

        logger.debug(f"← {response.status_code} {method} {url}")
        return Result(status_code=response.status_code, body=parse_body(response))

    async def aclose(self) -> None:
        """Close the HTTP client if the dispatcher created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
