"""JSON Web Key model and key-set parsing."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any

import jwt

logger = logging.getLogger(__name__)

# RFC 7638 required members per key type
_THUMBPRINT_MEMBERS = {
    "RSA": ("e", "kty", "n"),
    "EC": ("crv", "kty", "x", "y"),
    "OKP": ("crv", "kty", "x"),
    "oct": ("k", "kty"),
}


class InvalidJWKError(Exception):
    """Raised when a JWK or JWKS document cannot be parsed."""


@dataclass(frozen=True)
class JSONWebKey:
    """A single verification key published in a key set.

    ``key`` holds the ``cryptography`` public key object. A key whose
    ``key`` is None carries no usable material.
    """

    key_id: str | None
    key: Any = None
    key_type: str | None = None
    algorithm: str | None = None
    use: str | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "JSONWebKey":
        """Parse one JWK dict.

        Raises:
            InvalidJWKError: If the key type is unsupported or the key
                parameters are malformed.
        """
        if not isinstance(data, dict):
            raise InvalidJWKError(f"JWK must be a JSON object, got {type(data).__name__}")
        try:
            parsed = jwt.PyJWK(data)
        except jwt.PyJWTError as exc:
            raise InvalidJWKError(f"Unusable JWK {data.get('kid')!r}: {exc}") from exc
        return cls(
            key_id=parsed.key_id,
            key=parsed.key,
            key_type=parsed.key_type,
            algorithm=parsed.algorithm_name,
            use=parsed.public_key_use,
            raw=dict(data),
        )

    @property
    def is_empty(self) -> bool:
        """True when the key carries no key material."""
        return self.key is None

    def thumbprint(self) -> str:
        """Return the RFC 7638 SHA-256 thumbprint, base64url without padding."""
        members = _THUMBPRINT_MEMBERS.get(self.key_type or "")
        if members is None:
            raise InvalidJWKError(f"Cannot compute thumbprint for key type {self.key_type!r}")
        try:
            required = {name: self.raw[name] for name in members}
        except KeyError as exc:
            raise InvalidJWKError(f"JWK is missing member {exc.args[0]!r}") from exc
        digest = hashlib.sha256(canonical_json(required)).digest()
        return base64url_encode(digest)


def parse_key_set(document: Any) -> list[JSONWebKey]:
    """Parse a JWKS document (``{"keys": [...]}``) into keys.

    Keys that cannot be used are skipped with a warning, as a key set
    commonly mixes key types a verifier does not support.

    Raises:
        InvalidJWKError: If the document has no ``keys`` list.
    """
    if not isinstance(document, dict) or not isinstance(document.get("keys"), list):
        raise InvalidJWKError("JWKS document must be an object with a 'keys' list")

    keys: list[JSONWebKey] = []
    for entry in document["keys"]:
        try:
            keys.append(JSONWebKey.from_dict(entry))
        except InvalidJWKError as exc:
            logger.warning("Skipping JWK: %s", exc)
    return keys


def canonical_json(obj: dict) -> bytes:
    """Serialize dict to canonical JSON: sorted keys, no whitespace, UTF-8."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def base64url_encode(data: bytes) -> str:
    """Encode bytes to base64url with no padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(s: str) -> bytes:
    """Decode a base64url string (with or without padding) to bytes."""
    padding = 4 - len(s) % 4
    if padding != 4:
        s += "=" * padding
    return base64.urlsafe_b64decode(s)
