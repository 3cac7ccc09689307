#!/usr/bin/env python3
"""
IMS Middleware Server

Runs the authenticating IMS proxy as a standalone HTTP service. Clients call
the proxy without credentials; it fetches a UAA token for every request and
forwards it to IMS with the tenant headers attached.

Endpoints:
- <prefix>/v1/...: forwarded to <ims_url>/v1/...
- /healthz, /readyz: liveness and readiness checks
"""

import argparse
import contextlib
import logging
import os
import sys

import uvicorn
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route, Router

from .config import IMSConfig, load_config
from .routes import ims_proxy, ims_routes

logger = logging.getLogger(__name__)


# ============================================================================
# Health Checks
# ============================================================================

async def liveness_check(request):
    """Kubernetes liveness check endpoint."""
    return JSONResponse({"status": "alive"})


async def readiness_check(request):
    """Kubernetes readiness check endpoint."""
    return JSONResponse({"status": "ready"})


# ============================================================================
# Application
# ============================================================================

def create_app(config: IMSConfig, prefix: str = "/api", client=None) -> Starlette:
    """
    Build the Starlette application forwarding ``prefix`` to IMS.

    Args:
        config: IMS configuration
        prefix: Mount point of the IMS routes
        client: Optional httpx client used to reach IMS
    """
    proxy = ims_proxy(config, client)

    @contextlib.asynccontextmanager
    async def lifespan(app):
        yield
        await proxy.aclose()

    routes = [
        Route("/healthz", liveness_check, methods=["GET"]),
        Route("/readyz", readiness_check, methods=["GET"]),
        Mount(prefix.rstrip("/") or "", app=Router(routes=ims_routes(proxy))),
    ]
    return Starlette(routes=routes, lifespan=lifespan)


def run_http(config: IMSConfig, host: str, port: int, prefix: str):
    """Run the proxy under uvicorn."""
    app = create_app(config, prefix)

    logger.info("=" * 70)
    logger.info("IMS Middleware")
    logger.info("=" * 70)
    for key, value in config.summary().items():
        logger.info(f"  {key}: {value}")
    logger.info(f"  Listening on: {host}:{port}")
    logger.info(f"  Forwarding: {prefix}/v1/... -> {config.ims_url}/v1/...")
    logger.info("=" * 70)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info"
    )


# ============================================================================
# Main Entry Point
# ============================================================================

def main():
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s:     %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    parser = argparse.ArgumentParser(
        description="IMS Middleware - authenticating proxy for IMS"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8889")),
        help="Port to listen on (default: 8889)"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to listen on (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--prefix",
        default="/api",
        help="Path the IMS endpoints are mounted under (default: /api)"
    )
    parser.add_argument(
        "--config",
        help="YAML config file (default: /etc/ims/ims.yaml, then ./ims.yaml)"
    )

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ValueError as e:
        logger.error(f"❌ {e}")
        return 1

    run_http(config, args.host, args.port, args.prefix)
    return 0


if __name__ == "__main__":
    sys.exit(main())
