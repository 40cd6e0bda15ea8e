"""
Access gates run before the task engine.

A gate inspects request headers and may refuse the request. The country
gate trusts the country header set by the edge proxy (Cloudflare or
Vercel); unknown countries are allowed.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from taskengine.config.constants import DEFAULT_BLOCKED_COUNTRIES

# Edge proxy headers carrying the client's ISO country code, in priority order
COUNTRY_HEADERS = ("CF-IPCountry", "X-Vercel-IP-Country")
TEST_COUNTRY_HEADER = "X-Test-Country"
UNKNOWN_COUNTRY = "XX"

COUNTRY_NAMES = {
    "IN": "India",
    "PK": "Pakistan",
    "BD": "Bangladesh",
}


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access gate check."""

    allowed: bool
    country: str | None = None
    reason: str | None = None


class AccessGate(Protocol):
    """Pre-engine request filter."""

    def check(self, headers: Mapping[str, str]) -> AccessDecision: ...


class CountryAccessGate:
    """Blocks task access from configured countries."""

    def __init__(
        self,
        blocked_countries: Iterable[str] = DEFAULT_BLOCKED_COUNTRIES,
        enabled: bool = True,
        allow_test_header: bool = False,
    ) -> None:
        """
        Initialize country gate.

        Args:
            blocked_countries: ISO country codes to refuse
            enabled: When False every request is allowed
            allow_test_header: Honour X-Test-Country (debug only)
        """
        self.blocked = frozenset(code.strip().upper() for code in blocked_countries)
        self.enabled = enabled
        self.allow_test_header = allow_test_header

    def detect_country(self, headers: Mapping[str, str]) -> str | None:
        """Get the client's country code from trusted headers."""
        if self.allow_test_header:
            test_country = headers.get(TEST_COUNTRY_HEADER)
            if test_country:
                logger.debug(f"Using test country header: {test_country}")
                return test_country.strip().upper()

        for header in COUNTRY_HEADERS:
            value = headers.get(header)
            if value and value.strip().upper() != UNKNOWN_COUNTRY:
                return value.strip().upper()
        return None

    def check(self, headers: Mapping[str, str]) -> AccessDecision:
        if not self.enabled:
            return AccessDecision(allowed=True)

        country = self.detect_country(headers)
        if country is None:
            return AccessDecision(allowed=True)

        if country in self.blocked:
            name = COUNTRY_NAMES.get(country, country)
            logger.info(f"Task access blocked for country {country}")
            return AccessDecision(
                allowed=False,
                country=country,
                reason=f"Tasks are not available in {name}",
            )
        return AccessDecision(allowed=True, country=country)
