"""
IMS Middleware

Async client and authenticating proxy for the IMS geospatial mapping API,
using UAA client-credentials tokens.
"""

from .errors import IMSError, AuthenticationError, TransportError
from .uaa import UAA, uaa_url_for_instance
from .dispatcher import DEFAULT_IMS_URL, RequestDispatcher, Result
from .ims import IMS
from .proxy import ForwardingProxy, generic_middleware
from .config import IMSConfig, load_config
from .routes import ims_router

__all__ = [
    'IMSError',
    'AuthenticationError',
    'TransportError',
    'UAA',
    'uaa_url_for_instance',
    'DEFAULT_IMS_URL',
    'RequestDispatcher',
    'Result',
    'IMS',
    'ForwardingProxy',
    'generic_middleware',
    'IMSConfig',
    'load_config',
    'ims_router',
]
