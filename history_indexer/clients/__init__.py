# history_indexer/clients/__init__.py

from .interfaces import MiddlewareClientInterface
from .middleware import MiddlewareHttpClient
from .fiat_price import FiatPriceClient
