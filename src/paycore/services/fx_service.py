# src/paycore/services/fx_service.py

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

import requests

from paycore.config import Config
from paycore.ports import StaticRate

logger = logging.getLogger(__name__)


@dataclass
class FXQuote:
    base: str
    date: str
    rates: Dict[str, Decimal]


class FXService:
    """
    Small wrapper around the free Fawaz Ahmed Currency API:
    https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1

    - Supports 200+ fiat + crypto symbols
    - No API key, daily updated
    - Same API for INR, USD, BTC, ETH, etc.

    This lives outside the payment core. Use :meth:`snapshot` to turn a
    live quote into a StaticRate and hand that to the bitcoin kind.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        primary_base: str = Config.FX_PRIMARY_BASE,
        fallback_base: str = Config.FX_FALLBACK_BASE,
        timeout: float = Config.FX_TIMEOUT_SECONDS,
    ):
        self.session = session or requests.Session()
        self.bases = [primary_base, fallback_base]
        self.timeout = timeout

    def _fetch_rates(self, base: str) -> FXQuote:
        base = base.lower()
        last_error: Optional[Exception] = None
        for api_base in self.bases:
            url = f"{api_base}/currencies/{base}.json"
            try:
                resp = self.session.get(url, timeout=self.timeout)
                resp.raise_for_status()
                data = resp.json()
                rates = data.get(base, {})
                if not isinstance(rates, dict):
                    raise ValueError("Unexpected rate format from FX API")
                return FXQuote(
                    base=base,
                    date=data.get("date", "latest"),
                    rates={code: Decimal(str(value)) for code, value in rates.items()},
                )
            except (requests.RequestException, ValueError, InvalidOperation) as e:
                logger.warning("FX lookup against %s failed: %s", api_base, e)
                last_error = e
                continue
        raise RuntimeError(f"Could not fetch FX rates for {base}: {last_error}")

    def get_quote(self, from_code: str, to_code: str) -> FXQuote:
        quote = self._fetch_rates(from_code)
        if to_code.lower() not in quote.rates:
            raise ValueError(
                f"Currency '{to_code.upper()}' not supported for base '{from_code.upper()}'"
            )
        return quote

    def get_rate(self, from_code: str, to_code: str) -> Decimal:
        """
        Get conversion rate: 1 from_code -> X to_code
        e.g. get_rate('inr', 'btc') => Decimal('0.00000014')
        """
        if from_code.lower() == to_code.lower():
            return Decimal("1")
        return self.get_quote(from_code, to_code).rates[to_code.lower()]

    def convert(self, amount: Decimal, from_code: str, to_code: str) -> Decimal:
        """Convert amount from one currency/crypto to another."""
        return Decimal(str(amount)) * self.get_rate(from_code, to_code)

    def snapshot(self, from_code: str = Config.DEFAULT_CURRENCY, to_code: str = "BTC") -> StaticRate:
        """Fetch the current rate once and freeze it for the payment core."""
        if from_code.lower() == to_code.lower():
            return StaticRate(Decimal("1"), source=from_code.upper(), target=to_code.upper())
        quote = self.get_quote(from_code, to_code)
        return StaticRate(
            quote.rates[to_code.lower()],
            source=from_code.upper(),
            target=to_code.upper(),
            as_of=quote.date,
        )
