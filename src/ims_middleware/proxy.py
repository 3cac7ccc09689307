"""
Authenticating reverse proxy.

Forwards requests received by a Starlette application to another backend,
adding a freshly fetched UAA bearer token plus any static headers.

Example:
    headers = {
        'Predix-Zone-Id': '....',
        'X-Subtenant-Id': '....',
        'Content-Type': 'application/json',
    }
    middleware = generic_middleware(uaa, headers, 'https://intelligent-mapping-prod...predix.io')

    # Every method on /v1/... is forwarded
    routes = [
        Route('/v1/{path:path}', middleware('/v1/{path}'), methods=ALL_METHODS),
    ]
    app = Starlette(routes=[Mount('/api', routes=routes)])

    # /api/v1/collections is now forwarded to
    # https://intelligent-mapping-prod...predix.io/v1/collections

    # Only GET requests
    Route('/v1/{path:path}', middleware('/v1/{path}'), methods=['GET'])
"""

import json
import logging
import string
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from .errors import IMSError

logger = logging.getLogger(__name__)

ALL_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS', 'HEAD']

# Never forwarded in either direction
HOP_BY_HOP_HEADERS = {
    'connection',
    'keep-alive',
    'proxy-authenticate',
    'proxy-authorization',
    'te',
    'trailer',
    'trailers',
    'transfer-encoding',
    'upgrade',
}

Endpoint = Callable[[Request], Awaitable[Response]]


def _error_response(error: str, message: str, status_code: int = 502) -> Response:
    return Response(
        content=json.dumps({"error": error, "message": message}),
        status_code=status_code,
        headers={"Content-Type": "application/json"},
    )


def raw_path_params(request: Request) -> Dict[str, str]:
    """
    Path params of ``request`` as they appear, still percent-encoded, in the raw path.

    Starlette decodes path params, which loses the difference between ``/``
    and ``%2F``. Each decoded byte of the raw path is mapped back to its raw
    spelling and every param is located from the right, params being in
    left-to-right order.
    """
    raw_path = request.scope.get("raw_path")
    params = {key: str(value) for key, value in request.path_params.items()}
    if not raw_path:
        return params

    # Some ASGI test transports leave the query string in raw_path
    raw = raw_path.split(b"?", 1)[0].decode("latin-1")

    decoded = bytearray()
    spellings = []
    i = 0
    while i < len(raw):
        chunk = raw[i:i + 3]
        if raw[i] == '%' and len(chunk) == 3 and all(c in string.hexdigits for c in chunk[1:]):
            decoded.append(int(chunk[1:], 16))
            spellings.append(chunk)
            i += 3
        else:
            decoded.extend(raw[i].encode("latin-1"))
            spellings.append(raw[i])
            i += 1

    end = len(decoded)
    for key in reversed(list(params)):
        value = params[key].encode("utf-8")
        if not value:
            continue
        start = bytes(decoded).rfind(value, 0, end)
        if start < 0:
            continue
        params[key] = "".join(spellings[start:start + len(value)])
        end = start
    return params


class ForwardingProxy:
    """
    Forwards requests to ``url`` with authentication.

    The configuration (uaa, headers, url) is fixed at creation time; nothing
    else is shared between requests, each of which fetches its own token.
    """

    def __init__(
        self,
        uaa,
        additional_headers: Optional[Mapping[str, str]],
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 300.0,
    ):
        """
        Args:
            uaa: UAA instance, or any object with an async ``get_token()``
            additional_headers: Headers sent with every forwarded request
            url: Base URL of the backend to forward to
            client: httpx client used to reach the backend
            timeout: Timeout in seconds when no client is given
        """
        self.uaa = uaa
        self.additional_headers: Dict[str, str] = dict(additional_headers or {})
        self.url = url.rstrip('/')
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    def target_url(self, uri: str, request: Request) -> str:
        """
        Backend URL for ``request``: base URL, ``uri`` filled with path params, query string.

        Path params are substituted in their original percent-encoded form, so
        ``a%2Fb`` or ``a%3Fb`` reach the backend exactly as the client sent them.
        """
        target = f"{self.url}{uri.format(**raw_path_params(request))}"
        query = request.url.query
        if query:
            target += f"?{query}"
        return target

    def forward_headers(self, request: Request, token: Mapping[str, Any]) -> httpx.Headers:
        """Incoming headers, overridden by the static ones and the bearer token."""
        headers = httpx.Headers({
            key: value
            for key, value in request.headers.items()
            if key not in HOP_BY_HOP_HEADERS and key not in ('host', 'content-length')
        })
        headers.update(self.additional_headers)
        headers['Authorization'] = f"Bearer {token['access_token']}"
        return headers

    def endpoint(self, uri: str) -> Endpoint:
        """Return a Starlette endpoint forwarding to ``url + uri``."""

        async def forward(request: Request) -> Response:
            return await self.proxy_request(request, uri)

        return forward

    async def proxy_request(self, request: Request, uri: str) -> Response:
        """Fetch a token and forward ``request`` to the backend."""
        try:
            token = await self.uaa.get_token()
        except IMSError as e:
            logger.error(f"✗ No token for {request.method} {request.url.path}: {e}")
            return _error_response("token_error", str(e))

        target = self.target_url(uri, request)
        headers = self.forward_headers(request, token)

        has_body = 'content-length' in request.headers or 'transfer-encoding' in request.headers
        content = request.stream() if has_body else None
        if has_body and 'content-length' in request.headers:
            headers['Content-Length'] = request.headers['content-length']

        logger.debug(f"→ {request.method} {target}")

        try:
            backend_request = self.client.build_request(
                request.method,
                target,
                headers=headers,
                content=content,
            )
            backend_response = await self.client.send(backend_request, stream=True)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error(f"✗ Request failed: {e}")
            return _error_response("proxy_error", str(e))

        logger.debug(f"← {backend_response.status_code} {target}")

        response_headers = {
            key: value
            for key, value in backend_response.headers.items()
            if key.lower() not in HOP_BY_HOP_HEADERS
        }
        return StreamingResponse(
            backend_response.aiter_raw(),
            status_code=backend_response.status_code,
            headers=response_headers,
            background=BackgroundTask(backend_response.aclose),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def generic_middleware(
    uaa,
    additional_headers: Optional[Mapping[str, str]],
    url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Callable[[str], Endpoint]:
    """
    Build a factory of forwarding endpoints for one backend.

    Args:
        uaa: UAA instance, or an object whose async ``get_token()`` returns a
            mapping holding ``access_token``
        additional_headers: Any headers to be sent when the request is forwarded
        url: Where to forward the requests to
        client: Optional httpx client shared by every endpoint

    Returns:
        A function taking a URI template (e.g. ``'/v1/{path}'``, filled with the
        route's path parameters) and returning a Starlette endpoint. The
        function also carries ``proxy`` and ``aclose``; call ``await
        middleware.aclose()`` on shutdown to release the httpx client created
        when none was given.
    """
    proxy = ForwardingProxy(uaa, additional_headers, url, client=client)

    def middleware(uri: str) -> Endpoint:
        return proxy.endpoint(uri)

    middleware.proxy = proxy
    middleware.aclose = proxy.aclose
    return middleware
