"""URL validation against SSRF policy."""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from ..models.config import FetchPolicy
from ..models.errors import UrlError

# Dot-separated decimal, octal or 0x-hex parts; inet_aton decides if they form an address
NUMERIC_HOST = re.compile(r"^(0x[0-9a-f]*|[0-9]+)(\.(0x[0-9a-f]*|[0-9]+))*$")


def literal_ipv4(hostname: str) -> Optional[ipaddress.IPv4Address]:
    """
    Read a host as the IPv4 address a resolver would connect to.

    Besides dotted quads this covers the short, octal, hex and single
    integer forms (``127.1``, ``0177.0.0.1``, ``0x7f.0.0.1``,
    ``2130706433``) and IPv4-mapped IPv6 literals (``::ffff:127.0.0.1``).

    Args:
        hostname: Lower-cased host without port or brackets

    Returns:
        The canonical address, or None when the host is a name

    Raises:
        ValueError: If the host is numeric but not a valid address
    """
    if ":" in hostname:
        try:
            return ipaddress.IPv6Address(hostname).ipv4_mapped
        except ValueError:
            return None

    if not NUMERIC_HOST.match(hostname):
        return None

    try:
        return ipaddress.IPv4Address(socket.inet_aton(hostname))
    except OSError as err:
        raise ValueError(f"Not a valid IPv4 address: {hostname}") from err


@dataclass(frozen=True)
class ValidatedUrl:
    """A URL that passed the guard. Only the fetcher accepts these."""

    url: str
    scheme: str
    host: str
    port: Optional[int] = None


@dataclass(frozen=True)
class UrlValidationResult:
    """Result of URL validation."""

    url: Optional[ValidatedUrl] = None
    error: Optional[UrlError] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def rejection_reason(self) -> Optional[str]:
        return self.error.message if self.error else None

    @staticmethod
    def valid(url: ValidatedUrl) -> UrlValidationResult:
        """Create a valid result."""
        return UrlValidationResult(url=url)

    @staticmethod
    def invalid(error: UrlError) -> UrlValidationResult:
        """Create an invalid result."""
        return UrlValidationResult(error=error)


class UrlGuard:
    """
    Validates URLs before anything is fetched.

    Prevents SSRF (Server-Side Request Forgery) by rejecting:
    - Anything that is not an absolute http/https URL
    - localhost, 127.0.0.1 and 0.0.0.0
    - Literal IPv4 hosts inside the private and loopback ranges

    Numeric hosts are canonicalized first, so ``127.1``, ``0x7f.0.0.1``
    and ``[::ffff:127.0.0.1]`` are caught. Host names are not resolved,
    so a public name pointing at a private address is not caught here,
    and native IPv6 ranges (``::1``, ``fc00::/7``) are not blocked.

    Example:
        guard = UrlGuard(FetchPolicy())
        result = guard.validate("https://example.com/page")
        if not result.is_valid:
            print(f"Rejected: {result.rejection_reason}")
    """

    def __init__(
        self,
        policy: Optional[FetchPolicy] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the URL guard.

        Args:
            policy: Fetch policy holding schemes, blocked hosts and networks
            logger: Optional logger for rejection messages
        """
        self.policy = policy or FetchPolicy()
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, url: str) -> UrlValidationResult:
        """
        Validate a URL for format, scheme and host policy.

        Args:
            url: The URL to validate

        Returns:
            UrlValidationResult holding a ValidatedUrl or a UrlError
        """
        result = self._validate(url)
        if not result.is_valid:
            self.logger.debug(f"Rejected URL {url!r}: {result.rejection_reason}")
        return result

    def _validate(self, url: str) -> UrlValidationResult:
        try:
            parsed = urlsplit(url.strip())
            port = parsed.port
        except (ValueError, AttributeError):
            return UrlValidationResult.invalid(UrlError.invalid_format())

        if not parsed.scheme:
            return UrlValidationResult.invalid(UrlError.invalid_format())

        scheme = parsed.scheme.lower()
        if scheme not in self.policy.allowed_schemes:
            return UrlValidationResult.invalid(UrlError.unsupported_scheme(scheme))

        # hostname drops userinfo, port and IPv6 brackets
        hostname = (parsed.hostname or "").rstrip(".")
        if not hostname:
            return UrlValidationResult.invalid(UrlError.invalid_format())

        if self.is_forbidden_host(hostname):
            return UrlValidationResult.invalid(UrlError.forbidden_host(hostname))

        return UrlValidationResult.valid(
            ValidatedUrl(url=url.strip(), scheme=scheme, host=hostname, port=port)
        )

    def is_forbidden_host(self, hostname: str) -> bool:
        """
        Check a bare host name against the blocked hosts and networks.

        Args:
            hostname: Lower-cased host without port

        Returns:
            True if the host must not be contacted (numeric forms such as
            ``0x7f.1`` are checked as the address they stand for)
        """
        if hostname in self.policy.blocked_hosts:
            return True

        try:
            ip = literal_ipv4(hostname)
        except ValueError:
            # Numeric but unparsable; resolvers disagree on what it means
            return True

        if ip is None:
            return False

        return str(ip) in self.policy.blocked_hosts or any(
            ip in network for network in self.policy.blocked_networks
        )

    def is_valid(self, url: str) -> bool:
        """Quick check if URL is valid."""
        return self.validate(url).is_valid
