"""Tests for request token extractors."""

import httpx
import pytest

from jwk_client.extractor import (
    AuthorizationHeaderError,
    TokenNotFoundError,
    from_header,
    from_multiple,
    from_params,
)


def _request(url: str = "http://localhost", **headers: str) -> httpx.Request:
    return httpx.Request("GET", url, headers=headers)


def test_from_header_reads_bearer_token() -> None:
    assert from_header(_request(Authorization="Bearer abc.def.ghi")) == "abc.def.ghi"


def test_from_header_scheme_is_case_insensitive() -> None:
    assert from_header(_request(Authorization="bearer abc")) == "abc"


def test_from_header_missing() -> None:
    with pytest.raises(TokenNotFoundError, match="token not found"):
        from_header(_request())


@pytest.mark.parametrize("value", ["Basic dXNlcjpwYXNz", "Bearer", "Bearer a b"])
def test_from_header_malformed(value: str) -> None:
    with pytest.raises(AuthorizationHeaderError):
        from_header(_request(Authorization=value))


def test_from_params() -> None:
    extract = from_params()
    assert extract(_request("http://localhost/?token=abc")) == "abc"


def test_from_params_custom_name_missing() -> None:
    extract = from_params("access_token")
    with pytest.raises(TokenNotFoundError):
        extract(_request("http://localhost/?token=abc"))


def test_from_multiple_falls_through() -> None:
    extract = from_multiple(from_header, from_params())
    assert extract(_request("http://localhost/?token=abc")) == "abc"


def test_from_multiple_prefers_first() -> None:
    extract = from_multiple(from_header, from_params())
    req = _request("http://localhost/?token=query", Authorization="Bearer header")
    assert extract(req) == "header"


def test_from_multiple_nothing_found() -> None:
    extract = from_multiple(from_header, from_params())
    with pytest.raises(TokenNotFoundError):
        extract(_request())


def test_from_multiple_propagates_other_errors() -> None:
    extract = from_multiple(from_header, from_params())
    with pytest.raises(AuthorizationHeaderError):
        extract(_request("http://localhost/?token=abc", Authorization="Basic xyz"))
