"""Transfer currency selection for bank accounts.

The priority string has the form ``GLOBAL1,GLOBAL2;COUNTRY:CUR1,CUR2;...``.
Segments are separated by ``;``. A segment with a ``:`` is a per-country
list keyed by the upper-cased country code; a segment without one adds to
the global list.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Transfer currencies the payouts provider accepts per bank country
SUPPORTED_TRANSFER_CURRENCIES: Dict[str, List[str]] = {
    "US": ["USD"],
    "CA": ["CAD", "USD"],
    "GB": ["GBP", "EUR", "USD"],
    "FR": ["EUR"],
    "DE": ["EUR"],
    "ES": ["EUR"],
    "IT": ["EUR"],
    "NL": ["EUR"],
    "IE": ["EUR"],
    "BE": ["EUR"],
    "PT": ["EUR"],
    "CH": ["CHF", "EUR"],
}


def _split_currencies(raw: str) -> List[str]:
    return [currency.strip().upper() for currency in raw.split(",") if currency.strip()]


class CurrencyResolutionConfig(BaseModel):
    global_currency_priority: List[str] = Field(default_factory=list)
    per_country_currency_priority: Dict[str, List[str]] = Field(default_factory=dict)

    @classmethod
    def parse(cls, text: Optional[str]) -> "CurrencyResolutionConfig":
        global_priority: List[str] = []
        per_country: Dict[str, List[str]] = {}
        for segment in (text or "").split(";"):
            segment = segment.strip()
            if not segment:
                continue
            if ":" in segment:
                country, _, currencies = segment.partition(":")
                per_country[country.strip().upper()] = _split_currencies(currencies)
            else:
                global_priority.extend(_split_currencies(segment))
        return cls(global_currency_priority=global_priority, per_country_currency_priority=per_country)


class CurrencyResolver:
    def __init__(self, config: CurrencyResolutionConfig):
        self.config = config

    def supported_currencies(self, country: str) -> List[str]:
        return SUPPORTED_TRANSFER_CURRENCIES.get(country.upper(), [])

    def resolve(self, country: str, shop_currency: Optional[str], supported: Optional[Sequence[str]] = None) -> Optional[str]:
        """Pick the transfer currency for a bank account in ``country``.

        Order: the shop currency if supported, then the country priority list,
        then the global priority list, then the first supported currency.
        Countries with no known currency list accept the shop currency.
        """
        country = country.upper()
        shop_currency = shop_currency.upper() if shop_currency else None
        supported = list(supported) if supported is not None else self.supported_currencies(country)
        if not supported:
            return shop_currency
        if shop_currency in supported:
            return shop_currency
        for candidate in self.config.per_country_currency_priority.get(country, []):
            if candidate in supported:
                return candidate
        for candidate in self.config.global_currency_priority:
            if candidate in supported:
                return candidate
        logger.debug(f"No priority currency supported in {country}, using {supported[0]}")
        return supported[0]
