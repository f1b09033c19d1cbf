"""Currency conversion for catalog prices.

Prices are stored in one canonical currency. Conversion happens at the
edges: submitted prices are normalized on write and stored prices are
converted for display on read.

Rates are expressed as units of a currency per one unit of the canonical
currency, the convention exchange-rate APIs use for a base currency.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional, Protocol

import httpx

from app.core.errors import ConversionError, InternalError
from app.core.logging import get_logger
from app.infrastructure.redis import CacheManager

logger = get_logger(__name__)


def normalize_code(code: Optional[str]) -> str:
    """Upper-case and trim a currency code ("eur " -> "EUR")."""
    return (code or "").strip().upper()


class RateSource(Protocol):
    """Supplies the current rate table."""

    async def get_rates(self) -> Mapping[str, Decimal]:
        ...


class StaticRateTable:
    """Fixed rate table, usually loaded from settings."""

    def __init__(self, rates: Mapping[str, Decimal | str | float]):
        self._rates: Dict[str, Decimal] = {
            normalize_code(code): Decimal(str(rate)) for code, rate in rates.items()
        }

    async def get_rates(self) -> Mapping[str, Decimal]:
        return self._rates


class RemoteRateSource:
    """Rate table fetched from an exchange-rate HTTP API.

    Expects a JSON body of the form ``{"rates": {"EUR": 0.92, ...}}`` for the
    requested base currency. The table is cached in Redis when a cache is
    available. Failed fetches are not retried.
    """

    def __init__(
        self,
        api_url: str,
        base_currency: str = "USD",
        cache: Optional[CacheManager] = None,
        ttl_hours: int = 6,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.base_currency = normalize_code(base_currency)
        self.cache = cache
        self.ttl_hours = ttl_hours
        self.timeout = timeout
        self._client = client

    @property
    def cache_key(self) -> str:
        return f"exchange_rates:{self.base_currency}"

    async def get_rates(self) -> Mapping[str, Decimal]:
        if self.cache is not None:
            cached = await self.cache.get(self.cache_key)
            if cached:
                return self._parse(cached)

        payload = await self._fetch()
        rates = self._parse(payload.get("rates") if isinstance(payload, dict) else None)
        rates[self.base_currency] = Decimal("1")

        if self.cache is not None:
            await self.cache.set(
                self.cache_key,
                {code: str(rate) for code, rate in rates.items()},
                ttl_hours=self.ttl_hours,
            )
        logger.info(f"Loaded {len(rates)} exchange rates for base {self.base_currency}")
        return rates

    async def _fetch(self) -> dict:
        params = {"base": self.base_currency}
        try:
            if self._client is not None:
                response = await self._client.get(self.api_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.api_url, params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Exchange rate request failed: {e}", exc_info=True)
            raise InternalError("Exchange rate service unavailable") from e

    def _parse(self, raw) -> Dict[str, Decimal]:
        if not isinstance(raw, dict) or not raw:
            raise InternalError("Exchange rate service returned no rates")
        rates: Dict[str, Decimal] = {}
        for code, value in raw.items():
            try:
                rates[normalize_code(code)] = Decimal(str(value))
            except InvalidOperation:
                logger.warning(f"Skipping unparseable rate for {code}: {value!r}")
        return rates


class CurrencyConverter:
    """Convert amounts between currencies using a rate source.

    Holds no mutable state of its own, so one instance is shared by all
    requests.

    Example:
        >>> converter = CurrencyConverter(StaticRateTable({"USD": 1, "EUR": "0.5"}))
        >>> await converter.convert(Decimal("10"), "EUR", "USD")
        Decimal('20.00')
    """

    def __init__(self, rate_source: RateSource, decimal_places: int = 2):
        self.rate_source = rate_source
        self.quantum = Decimal(1).scaleb(-decimal_places)

    async def convert(self, amount, from_currency: str, to_currency: str) -> Decimal:
        """Convert ``amount`` from one currency to another.

        Raises:
            ConversionError: If either currency code is unknown, or the
                result is too large to represent at price precision.
        """
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        source = normalize_code(from_currency)
        target = normalize_code(to_currency)
        if source == target:
            return value

        rates = await self.rate_source.get_rates()
        unknown = [code or "<empty>" for code in (source, target)
                   if code not in rates or rates[code] <= 0]
        if unknown:
            raise ConversionError(f"Unsupported currency: {', '.join(unknown)}")

        try:
            converted = value / rates[source] * rates[target]
            return converted.quantize(self.quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise ConversionError(f"Amount {value} cannot be converted from {source} to {target}") from e

    async def available_currencies(self) -> List[str]:
        rates = await self.rate_source.get_rates()
        return sorted(code for code, rate in rates.items() if rate > 0)

    async def rate_table(self) -> Dict[str, Decimal]:
        return dict(await self.rate_source.get_rates())
