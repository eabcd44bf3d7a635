"""URL, domain and recipient validation helpers."""

import re
from typing import Iterable
from urllib.parse import urlparse

from news_digest.core.errors import RecipientError

MAX_RECIPIENTS = 3

_LIST_SPLIT = re.compile(r"[,\n;]+")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_domain(domain: str) -> str:
    """Lowercase a hostname and strip a leading ``www.``."""
    return re.sub(r"^www\.", "", domain.strip().lower())


def validate_https_url(url: str) -> str:
    """Return the hostname of an HTTPS URL.

    Raises:
        ValueError: If the URL is not absolute HTTPS.
    """
    parsed = urlparse(url.strip())
    if parsed.scheme != "https":
        raise ValueError(f"Only HTTPS URLs are allowed: {url}")
    if not parsed.hostname:
        raise ValueError(f"URL has no hostname: {url}")
    return parsed.hostname


def is_domain_allowed(hostname: str, allowed_domains: Iterable[str]) -> bool:
    """Check hostname equals, or is a subdomain of, an allowed domain.

    >>> is_domain_allowed("www.example.com", ["example.com"])
    True
    >>> is_domain_allowed("evilexample.com", ["example.com"])
    False
    """
    host = normalize_domain(hostname)
    for domain in allowed_domains:
        normalized = normalize_domain(domain)
        if not normalized:
            continue
        if host == normalized or host.endswith(f".{normalized}"):
            return True
    return False


def is_url_allowed(url: str, allowed_domains: Iterable[str]) -> bool:
    """HTTPS check plus allow-list check in one step."""
    try:
        hostname = validate_https_url(url)
    except ValueError:
        return False
    return is_domain_allowed(hostname, allowed_domains)


def _split_list(raw: str) -> list[str]:
    return [entry.strip() for entry in _LIST_SPLIT.split(raw or "") if entry.strip()]


def parse_recipient_list(raw: str) -> list[str]:
    """Split a newline/comma/semicolon separated recipient string."""
    return _split_list(raw)


def parse_category_list(raw: str) -> list[str]:
    """Split a separated category list, lowercased."""
    return [entry.lower() for entry in _split_list(raw)]


def is_valid_email(address: str) -> bool:
    return bool(_EMAIL_RE.match(address))


def validate_recipient_list(recipients: list[str], limit: int = MAX_RECIPIENTS) -> list[str]:
    """Deduplicate (keeping order) and validate a recipient list.

    Raises:
        RecipientError: If the list is empty, has an invalid address, or
            exceeds ``limit`` distinct entries.
    """
    if not recipients:
        raise RecipientError("Provide at least one recipient email")

    unique = list(dict.fromkeys(r.strip() for r in recipients if r.strip()))
    if not unique:
        raise RecipientError("Provide at least one recipient email")

    for address in unique:
        if not is_valid_email(address):
            raise RecipientError(f"Invalid recipient email: {address}")

    if len(unique) > limit:
        raise RecipientError(f"At most {limit} recipients allowed")

    return unique


def resolve_recipients(email: str, extra_recipients: str, limit: int = MAX_RECIPIENTS) -> list[str]:
    """Primary email followed by the parsed extras, validated."""
    return validate_recipient_list([email, *parse_recipient_list(extra_recipients)], limit)
