"""
Client for the IMS (Intelligent Mapping Service) collections API.

All operations are coroutines returning a ``Result`` with two fields:

- status_code
- body

Errors that can be raised by any operation:

- AuthenticationError ("Error getting token: 401")
  Bad client id or secret in the UAA provided
- TransportError ('Invalid URI "..."')
  The URL of the UAA or of IMS is not accessible or not correct

Everything else is reported through the status code, for example:

- 403: the UAA is not authorised to access this IMS instance, or has no
  access to the zone id
- 400: validation error (wrong zone id format, bad body, ...)
"""

from typing import Any, Optional

import httpx

from .dispatcher import DEFAULT_IMS_URL, RequestDispatcher, Result


class IMS:
    """
    IMS collections and features for one zone/subtenant.

    Example:
        uaa = UAA(uaa_url, "client", "secret")
        async with IMS(uaa, zone_id, "my-subtenant") as ims:
            result = await ims.get_collection("roads")
            if result.status_code == 200:
                print(result.body)
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
        """
        Args:
            uaa: UAA instance holding the client id/secret/URL
            predix_zone_id: Should be a UUID
            subtenant_id: Any string that identifies a subtenant
            ims_url: IMS base URL, Predix US West production by default
            client: httpx client to inject instead of the default one
            timeout: Request timeout in seconds when no client is injected
        """
        self.dispatcher = RequestDispatcher(
            uaa,
            predix_zone_id,
            subtenant_id,
            ims_url=ims_url,
            client=client,
            timeout=timeout,
        )

    @property
    def ims_url(self) -> str:
        return self.dispatcher.ims_url

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def list_collections(self) -> Result:
        """Return all the collections stored."""
        return await self.get("collections")

    async def get_collection(self, coll_name: str) -> Result:
        """Return the named collection."""
        return await self.get(f"collections/{coll_name}")

    async def create_collection(self, coll_name: str, body: Any) -> Result:
        """
        Add a new collection called ``coll_name``.

        Args:
            coll_name: Collection name
            body: GeoJSON representing the collection
        """
        return await self.post(f"collections/{coll_name}", body)

    async def spatial_query(self, coll_name: str, operator: str, body: Any) -> Result:
        """
        Query a collection spatially.

        Args:
            coll_name: Collection name
            operator: ``nearest`` or ``within``
            body: JSON describing the spatial query operation
        """
        return await self.post(f"collections/{coll_name}/spatial-query?operator={operator}", body)

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    async def get_features(self, coll_name: str, feature_id: str) -> Result:
        """Return zero, one or more features with the given id."""
        return await self.get(f"collections/{coll_name}/features?id={feature_id}")

    async def update_features(self, coll_name: str, feature_id: str, body: Any) -> Result:
        """Replace zero, one or more features with the given id by ``body``."""
        return await self.put(f"collections/{coll_name}/features?id={feature_id}", body)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(self, uri: str) -> Result:
        return await self.dispatcher.dispatch(uri, "GET")

    async def post(self, uri: str, body: Any) -> Result:
        return await self.dispatcher.dispatch(uri, "POST", body)

    async def put(self, uri: str, body: Any) -> Result:
        return await self.dispatcher.dispatch(uri, "PUT", body)

    async def aclose(self) -> None:
        await self.dispatcher.aclose()

    async def __aenter__(self) -> "IMS":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
