# history_indexer/clients/fiat_price.py

import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional

import msgspec
import requests

from ..core.logging import IndexerLogger, log_with_context, DEBUG, WARNING
from ..types import FiatPriceConfig

# a failed day is not asked again for this long
FAILURE_RETRY_SECONDS = 300


class FiatPriceClient:
    """
    Daily native currency price in fiat.

    Expects a coin history endpoint in the CoinGecko format: it is called with
    `date=DD-MM-YYYY` and answers with `market_data.current_price.{currency}`.
    Disabled when no URL is configured. Lookups never raise: a failed lookup
    is logged and priced at zero, and the day is not looked up again until
    FAILURE_RETRY_SECONDS have passed.
    """

    def __init__(self,
                 config: FiatPriceConfig,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.session = session or requests.Session()
        self.logger = IndexerLogger.get_logger('clients.fiat_price')
        self._prices_by_day: Dict[str, Decimal] = {}
        self._failed_at_by_day: Dict[str, float] = {}
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self.config.url)

    def get_fiat_price(self, time_ms: int) -> Decimal:
        if not self.enabled:
            return Decimal(0)

        day = datetime.fromtimestamp(time_ms / 1000, tz=timezone.utc).strftime('%d-%m-%Y')
        if day in self._prices_by_day:
            return self._prices_by_day[day]

        failed_at = self._failed_at_by_day.get(day)
        if failed_at is not None and self._clock() - failed_at < FAILURE_RETRY_SECONDS:
            return Decimal(0)

        try:
            response = self.session.get(
                self.config.url,
                params={'date': day, 'localization': 'false'},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            payload = msgspec.json.decode(response.content)
            price = Decimal(str(payload['market_data']['current_price'][self.config.currency]))
        except (requests.RequestException, msgspec.DecodeError, KeyError, TypeError, InvalidOperation) as e:
            log_with_context(self.logger, WARNING, "Fiat price lookup failed, using zero",
                            day=day, error=str(e))
            self._failed_at_by_day[day] = self._clock()
            return Decimal(0)

        self._failed_at_by_day.pop(day, None)
        self._prices_by_day[day] = price
        log_with_context(self.logger, DEBUG, "Fiat price fetched", day=day, price=str(price))
        return price
