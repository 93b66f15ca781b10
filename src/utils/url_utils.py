"""Domain normalization utilities for source URLs."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

from src.services.errors import InvalidDomainError

logger = logging.getLogger(__name__)

_HOSTNAME_RE = re.compile(r"^[a-z0-9](?:[a-z0-9\-_]*[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9\-_]*[a-z0-9])?)+$")
_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class DomainInfo:
    """Breakdown of a URL host into the parts used for domain tracking."""

    normalized_domain: str
    protocol: str
    hostname: str
    subdomain: str | None
    root_domain: str


def _with_scheme(value: str) -> str:
    if value.lower().startswith(_SCHEMES):
        return value
    return f"https://{value}"


def _parse_hostname(value: str) -> str:
    try:
        parsed = urlparse(_with_scheme(value))
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidDomainError(f"Invalid URL or domain: {value}") from exc

    if not hostname:
        raise InvalidDomainError(f"Invalid URL or domain: {value}")

    hostname = hostname.lower()
    # fully-qualified form, "example.com." is the same host as "example.com"
    if hostname.endswith("."):
        hostname = hostname[:-1]
    if not hostname:
        raise InvalidDomainError(f"Invalid URL or domain: {value}")

    if not hostname.isascii():
        try:
            hostname = hostname.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise InvalidDomainError(f"Invalid URL or domain: {value}") from exc
    return hostname


def to_unicode_domain(domain: str) -> str:
    """Return the Unicode spelling of a punycode domain.

    ``xn--bcher-kva.de`` becomes ``bücher.de``; other domains come back
    unchanged.
    """
    if "xn--" not in domain:
        return domain
    try:
        return domain.encode("ascii").decode("idna")
    except UnicodeError:
        return domain


def _require_text(value: object, what: str) -> None:
    if not isinstance(value, str):
        raise InvalidDomainError(
            f"{what} must be a string, got {type(value).__name__}"
        )
    if not value.strip():
        raise InvalidDomainError(f"{what} cannot be empty")


def _strip_www(hostname: str) -> str:
    return hostname[4:] if hostname.startswith("www.") else hostname


def normalize_domain(domain: str) -> str:
    """
    Normalize a domain string to the key used for domain statistics.

    Lowercases, drops any scheme, path or port, and removes a leading
    ``www.``. The result must look like a hostname with a top-level domain.

    Examples:
        normalize_domain("https://www.NYTimes.com/article") -> "nytimes.com"
        normalize_domain("HTTP://News.BBC.co.uk/") -> "news.bbc.co.uk"
        normalize_domain("example.com") -> "example.com"

    Raises:
        InvalidDomainError: if the value is empty or not a hostname.
    """
    _require_text(domain, "Domain")

    cleaned = domain.strip().lower()
    if any(ch.isspace() for ch in cleaned):
        raise InvalidDomainError(f"Invalid URL or domain: {domain}")

    hostname = _strip_www(_parse_hostname(cleaned))

    if "." not in hostname:
        raise InvalidDomainError(
            "Invalid domain: must include top-level domain"
        )
    if not _HOSTNAME_RE.match(hostname):
        raise InvalidDomainError(f"Invalid URL or domain: {domain}")

    return hostname


def extract_domain_from_url(url: str) -> str:
    """
    Extract the normalized domain from a full URL.

    Examples:
        extract_domain_from_url("https://www.nytimes.com/2025/01/a.html")
            -> "nytimes.com"
        extract_domain_from_url("news.bbc.co.uk/section?param=value")
            -> "news.bbc.co.uk"
    """
    _require_text(url, "URL")

    cleaned = url.strip()
    if any(ch.isspace() for ch in cleaned):
        raise InvalidDomainError(f"Invalid URL: {url}")

    return normalize_domain(_parse_hostname(cleaned))


def parse_domain_info(url: str) -> DomainInfo:
    """
    Parse a URL into normalized domain information.

    ``co.<tld>`` registrations keep three labels in the root domain, so
    ``news.bbc.co.uk`` splits into subdomain ``news`` and root ``bbc.co.uk``.
    """
    _require_text(url, "URL")

    cleaned = _with_scheme(url.strip())
    normalized = extract_domain_from_url(cleaned)
    hostname = _parse_hostname(cleaned)
    protocol = f"{urlparse(cleaned).scheme.lower()}:"

    parts = normalized.split(".")
    subdomain: str | None = None
    if len(parts) > 2:
        if parts[-2] == "co" and len(parts) > 3:
            subdomain = ".".join(parts[:-3])
            root_domain = ".".join(parts[-3:])
        elif parts[-2] == "co":
            root_domain = normalized
        else:
            subdomain = ".".join(parts[:-2])
            root_domain = ".".join(parts[-2:])
    else:
        root_domain = normalized

    return DomainInfo(
        normalized_domain=normalized,
        protocol=protocol,
        hostname=hostname,
        subdomain=subdomain or None,
        root_domain=root_domain,
    )


def is_valid_url(url: str) -> bool:
    """Return True when ``url`` resolves to a hostname with a TLD."""
    try:
        extract_domain_from_url(url)
    except InvalidDomainError:
        return False
    return True


def is_valid_domain(domain: str) -> bool:
    try:
        normalized = normalize_domain(domain)
    except InvalidDomainError:
        return False
    return len(normalized) >= 3


def is_same_domain(url1: str, url2: str) -> bool:
    """Check if two URLs share the same normalized domain."""
    try:
        return extract_domain_from_url(url1) == extract_domain_from_url(url2)
    except InvalidDomainError:
        return False


def get_root_domain(url: str) -> str:
    """Return the registrable root of ``url`` (``news.bbc.co.uk`` -> ``bbc.co.uk``)."""
    return parse_domain_info(url).root_domain
