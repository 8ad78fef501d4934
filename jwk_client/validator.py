"""JWT validation for incoming requests."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

import httpx
import jwt

from .extractor import TokenExtractor, from_header
from .jwk import JSONWebKey

logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when a token fails signature or claims validation."""


class SecretProvider(Protocol):
    """Anything that can supply the verification key for a request."""

    async def get_secret(self, request: httpx.Request) -> Any: ...


class KeyProvider:
    """Secret provider that always returns the same key."""

    def __init__(self, key: Any) -> None:
        self._key = key

    async def get_secret(self, request: httpx.Request) -> Any:
        return self._key


class JWTValidator:
    """Validates the JWT carried by a request.

    Args:
        secret_provider: Supplies the verification key, e.g. a ``JWKClient``.
        audience: Expected ``aud`` claim; not checked when None.
        issuer: Expected ``iss`` claim; not checked when None.
        algorithms: Signing algorithms accepted in the token header.
        leeway: Clock skew tolerance in seconds for ``exp``/``nbf``/``iat``.
        extractor: Pulls the raw token out of a request.
    """

    def __init__(
        self,
        secret_provider: SecretProvider,
        *,
        audience: str | Iterable[str] | None = None,
        issuer: str | None = None,
        algorithms: Iterable[str] = ("RS256",),
        leeway: float = 0,
        extractor: TokenExtractor = from_header,
    ) -> None:
        self._secret_provider = secret_provider
        self._audience = audience
        self._issuer = issuer
        self._algorithms = list(algorithms)
        self._leeway = leeway
        self._extractor = extractor

    async def validate_request(self, request: httpx.Request) -> dict:
        """Validate the request's token and return its claims.

        Raises:
            TokenValidationError: If the token is malformed, uses a
                disallowed algorithm, or fails signature or claims checks.
        """
        token = self._extractor(request)

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as exc:
            raise TokenValidationError(f"Malformed token: {exc}") from exc
        alg = header.get("alg")
        if alg not in self._algorithms:
            raise TokenValidationError(f"Algorithm {alg!r} is not allowed")

        secret = await self._secret_provider.get_secret(request)
        key = secret.key if isinstance(secret, JSONWebKey) else secret

        try:
            return jwt.decode(
                token,
                key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.PyJWTError as exc:
            logger.debug("Token validation failed: %s", exc)
            raise TokenValidationError(str(exc)) from exc
