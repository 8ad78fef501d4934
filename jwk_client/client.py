"""Async client resolving token signing keys from a JWKS endpoint.

Keys are looked up in a ``KeyCacher`` first; on a miss or an expired
entry the key set is downloaded again and handed to the cache.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass

import httpx
import jwt

from .cache import KeyCacher, KeyCacheError, KeyNotFoundError, new_persistent_key_cacher
from .extractor import TokenExtractor, from_header
from .jwk import InvalidJWKError, JSONWebKey, parse_key_set

logger = logging.getLogger(__name__)

_JSON_CONTENT_TYPES = ("application/json", "application/jwk-set+json")


class JWKClientError(Exception):
    """Base class for JWK client failures."""


class InvalidContentTypeError(JWKClientError):
    """Raised when the JWKS endpoint does not answer with JSON."""

    def __init__(
        self,
        message: str = "should have a JSON content type for JWKS endpoint",
    ) -> None:
        super().__init__(message)


class KeySetDecodeError(JWKClientError):
    """Raised when the JWKS payload is not a valid key set."""


class TokenHeaderError(JWKClientError):
    """Raised when a token header is malformed or names no key."""


@dataclass
class JWKClientOptions:
    """Connection settings for the JWKS endpoint.

    Attributes:
        uri: URL of the JWKS document.
        timeout: HTTP timeout in seconds.
        transport: Optional httpx transport, e.g. for proxies or testing.
    """

    uri: str
    timeout: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    @classmethod
    def from_env(cls) -> "JWKClientOptions":
        """Build options from ``JWKS_URI`` and ``JWKS_TIMEOUT``.

        Raises:
            KeyError: If ``JWKS_URI`` is not set.
        """
        return cls(
            uri=os.environ["JWKS_URI"],
            timeout=float(os.environ.get("JWKS_TIMEOUT", "10")),
        )


class JWKClient:
    """Resolves verification keys by ``kid`` for incoming tokens.

    Args:
        options: Endpoint settings.
        extractor: Pulls the raw token out of a request; defaults to the
            Authorization Bearer header.
        key_cacher: Where resolved keys are kept; defaults to a persistent
            in-memory cache.
    """

    def __init__(
        self,
        options: JWKClientOptions,
        extractor: TokenExtractor | None = None,
        key_cacher: KeyCacher | None = None,
    ) -> None:
        self._options = options
        self._extractor = extractor or from_header
        self._key_cacher = key_cacher if key_cacher is not None else new_persistent_key_cacher()
        self._lock = asyncio.Lock()

    @property
    def key_cacher(self) -> KeyCacher:
        return self._key_cacher

    # ------------------------------------------------------------------
    # Key set retrieval
    # ------------------------------------------------------------------

    async def download_keys(self) -> list[JSONWebKey]:
        """Fetch and parse the key set from the JWKS endpoint.

        Returns:
            The usable keys of the published key set.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
            InvalidContentTypeError: If the response is not JSON.
            KeySetDecodeError: If the payload is not a key set.
            KeyNotFoundError: If the key set is empty.
        """
        async with httpx.AsyncClient(
            timeout=self._options.timeout,
            transport=self._options.transport,
        ) as client:
            resp = await client.get(self._options.uri)
            resp.raise_for_status()

        content_type = resp.headers.get("Content-Type", "")
        if not content_type.startswith(_JSON_CONTENT_TYPES):
            raise InvalidContentTypeError()

        try:
            keys = parse_key_set(resp.json())
        except (ValueError, InvalidJWKError) as exc:
            raise KeySetDecodeError(f"Invalid JWKS payload from {self._options.uri}: {exc}") from exc

        if not keys:
            raise KeyNotFoundError()
        logger.debug("Downloaded %d keys from %s", len(keys), self._options.uri)
        return keys

    # ------------------------------------------------------------------
    # Key resolution
    # ------------------------------------------------------------------

    async def get_key(self, key_id: str) -> JSONWebKey:
        """Return the key for ``key_id``, downloading the key set on a miss.

        Raises:
            KeyNotFoundError: If the downloaded key set has no such key.
        """
        async with self._lock:
            try:
                return self._key_cacher.get(key_id)
            except KeyCacheError as exc:
                logger.debug("Key %r not served from cache (%s), downloading key set", key_id, exc)
            keys = await self.download_keys()
            return self._key_cacher.add(key_id, keys)

    async def get_secret(self, request: httpx.Request) -> JSONWebKey:
        """Return the key that signed the token carried by ``request``.

        Raises:
            TokenHeaderError: If the token header is malformed or has no kid.
        """
        token = self._extractor(request)
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as exc:
            raise TokenHeaderError(f"Malformed token header: {exc}") from exc
        key_id = header.get("kid")
        if not key_id:
            raise TokenHeaderError("no kid in the token header")
        return await self.get_key(key_id)
