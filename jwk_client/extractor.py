"""Extract raw JWTs from incoming HTTP requests."""

from __future__ import annotations

from typing import Callable

import httpx

TokenExtractor = Callable[[httpx.Request], str]


class TokenExtractionError(Exception):
    """Base class for token extraction failures."""


class TokenNotFoundError(TokenExtractionError):
    """Raised when the request carries no token."""

    def __init__(self, message: str = "token not found") -> None:
        super().__init__(message)


class AuthorizationHeaderError(TokenExtractionError):
    """Raised when the Authorization header is not ``Bearer {token}``."""


def from_header(request: httpx.Request) -> str:
    """Read the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        TokenNotFoundError: If there is no Authorization header.
        AuthorizationHeaderError: If the header is not a Bearer credential.
    """
    value = request.headers.get("Authorization")
    if not value:
        raise TokenNotFoundError()
    parts = value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthorizationHeaderError("Authorization header format must be Bearer {token}")
    return parts[1]


def from_params(name: str = "token") -> TokenExtractor:
    """Build an extractor reading the token from query parameter ``name``."""

    def extract(request: httpx.Request) -> str:
        token = request.url.params.get(name)
        if not token:
            raise TokenNotFoundError()
        return token

    return extract


def from_multiple(*extractors: TokenExtractor) -> TokenExtractor:
    """Build an extractor returning the first token any of ``extractors`` finds.

    Extractors that find nothing are skipped; any other error is raised
    as-is.
    """

    def extract(request: httpx.Request) -> str:
        for extractor in extractors:
            try:
                return extractor(request)
            except TokenNotFoundError:
                continue
        raise TokenNotFoundError()

    return extract
