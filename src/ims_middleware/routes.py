"""
Starlette routing that exposes every IMS endpoint through the forwarding proxy.

Example:
    config = IMSConfig(
        predix_zone_id='56e57707-cae0-4589-b62c-b222c462c1d3',
        subtenant_id='56e57707-cae0-4589-b62c-b222c462c1d3',
        client_id='client',
        client_secret='secret',
        uaa_instance_id='36b8dd23-51eb-4b74-bef9-ea2f029fa7ee',
    )
    app = Starlette(routes=[Mount('/api', app=ims_router(config))])
    # /api/v1/... now reaches every endpoint defined in IMS
"""

import logging
from typing import List, Optional

import httpx
from starlette.routing import Route, Router

from .config import IMSConfig
from .proxy import ALL_METHODS, ForwardingProxy
from .uaa import UAA

logger = logging.getLogger(__name__)


def ims_proxy(config: IMSConfig, client: Optional[httpx.AsyncClient] = None) -> ForwardingProxy:
    """Forwarding proxy to IMS authenticated with the UAA client in ``config``."""
    uaa = UAA(config.uaa_token_url, config.client_id, config.client_secret)
    return ForwardingProxy(
        uaa,
        config.tenant_headers,
        config.ims_url,
        client=client,
        timeout=config.timeout,
    )


def ims_routes(proxy: ForwardingProxy) -> List[Route]:
    """All methods on every path, forwarded to the same path on IMS."""
    return [
        Route('/{path:path}', proxy.endpoint('/{path}'), methods=ALL_METHODS),
    ]


def ims_router(config: IMSConfig, client: Optional[httpx.AsyncClient] = None) -> Router:
    """
    Build a router giving access to all the endpoints defined in IMS.

    Args:
        config: Tenant, UAA and IMS settings
        client: Optional httpx client used to reach IMS

    Returns:
        A Starlette Router, to be mounted by the embedding application
    """
    proxy = ims_proxy(config, client)
    logger.info(f"IMS router forwarding to {proxy.url}")
    return Router(routes=ims_routes(proxy))
