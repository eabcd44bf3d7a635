"""Tests for domain and recipient validation."""

import pytest

from news_digest.core import RecipientError
from news_digest.core.validation import (
    is_domain_allowed,
    is_url_allowed,
    normalize_domain,
    parse_category_list,
    parse_recipient_list,
    resolve_recipients,
    validate_https_url,
    validate_recipient_list,
)


def test_normalize_domain() -> None:
    assert normalize_domain("WWW.Example.com ") == "example.com"
    assert normalize_domain("news.example.com") == "news.example.com"


def test_domain_allowed_with_www() -> None:
    """Test www host is admitted against the bare domain."""
    assert is_domain_allowed("www.example.com", ["example.com"])


def test_domain_allowed_subdomain() -> None:
    assert is_domain_allowed("markets.example.com", ["example.com"])


def test_domain_suffix_lookalike_rejected() -> None:
    """Test a host that only ends with the same letters is rejected."""
    assert not is_domain_allowed("evilexample.com", ["example.com"])


def test_domain_not_in_list() -> None:
    assert not is_domain_allowed("other.org", ["example.com"])
    assert not is_domain_allowed("example.com", [])


def test_validate_https_url() -> None:
    assert validate_https_url("https://www.example.com/a") == "www.example.com"

    with pytest.raises(ValueError, match="HTTPS"):
        validate_https_url("http://example.com")


def test_is_url_allowed() -> None:
    assert is_url_allowed("https://www.example.com/story", ["example.com"])
    assert not is_url_allowed("http://www.example.com/story", ["example.com"])
    assert not is_url_allowed("not a url", ["example.com"])


def test_parse_recipient_list_separators() -> None:
    raw = "a@example.com, b@example.com;c@example.com\n\n d@example.com "

    assert parse_recipient_list(raw) == [
        "a@example.com",
        "b@example.com",
        "c@example.com",
        "d@example.com",
    ]


def test_parse_category_list() -> None:
    assert parse_category_list("World, Local;food") == ["world", "local", "food"]
    assert parse_category_list("") == []


def test_resolve_recipients_within_cap() -> None:
    """Test primary plus two extras yields exactly three."""
    recipients = resolve_recipients("me@example.com", "a@example.com\nb@example.com")

    assert recipients == ["me@example.com", "a@example.com", "b@example.com"]


def test_resolve_recipients_deduplicates() -> None:
    recipients = resolve_recipients("me@example.com", "me@example.com, a@example.com")

    assert recipients == ["me@example.com", "a@example.com"]


def test_resolve_recipients_over_cap() -> None:
    """Test a fourth distinct recipient is rejected."""
    with pytest.raises(RecipientError, match="At most 3"):
        resolve_recipients("me@example.com", "a@example.com,b@example.com,c@example.com")


def test_validate_recipient_list_invalid_address() -> None:
    with pytest.raises(RecipientError, match="Invalid recipient"):
        validate_recipient_list(["me@example.com", "not-an-email"])


def test_validate_recipient_list_empty() -> None:
    with pytest.raises(RecipientError, match="at least one"):
        validate_recipient_list([])

    with pytest.raises(RecipientError, match="at least one"):
        resolve_recipients("", "")
