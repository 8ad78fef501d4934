"""JWK client.

Resolve token verification keys from a JWKS endpoint, with an in-memory
key cache, and validate JWTs carried by HTTP requests.
"""

import logging

from .cache import (
    KeyCacher,
    MemoryKeyCacher,
    MaxAge,
    MaxSize,
    NO_EXPIRY,
    UNBOUNDED,
    new_persistent_key_cacher,
    KeyCacheError,
    KeyNotFoundError,
    KeyExpiredError,
)
from .jwk import (
    JSONWebKey,
    InvalidJWKError,
    parse_key_set,
    base64url_encode,
    base64url_decode,
)
from .client import (
    JWKClient,
    JWKClientOptions,
    JWKClientError,
    InvalidContentTypeError,
    KeySetDecodeError,
    TokenHeaderError,
)
from .extractor import (
    from_header,
    from_params,
    from_multiple,
    TokenExtractionError,
    TokenNotFoundError,
    AuthorizationHeaderError,
)
from .validator import JWTValidator, KeyProvider, SecretProvider, TokenValidationError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "KeyCacher",
    "MemoryKeyCacher",
    "MaxAge",
    "MaxSize",
    "NO_EXPIRY",
    "UNBOUNDED",
    "new_persistent_key_cacher",
    "KeyCacheError",
    "KeyNotFoundError",
    "KeyExpiredError",
    "JSONWebKey",
    "InvalidJWKError",
    "parse_key_set",
    "base64url_encode",
    "base64url_decode",
    "JWKClient",
    "JWKClientOptions",
    "JWKClientError",
    "InvalidContentTypeError",
    "KeySetDecodeError",
    "TokenHeaderError",
    "from_header",
    "from_params",
    "from_multiple",
    "TokenExtractionError",
    "TokenNotFoundError",
    "AuthorizationHeaderError",
    "JWTValidator",
    "KeyProvider",
    "SecretProvider",
    "TokenValidationError",
]
__version__ = "0.1.0"
