# history_indexer/clients/middleware.py

from typing import Any, Callable, Dict, Iterator, List, Optional, Type, TypeVar

import backoff
import msgspec
import requests

from ..core.errors import MiddlewareError
from ..core.logging import IndexerLogger, log_with_context, DEBUG, WARNING
from ..types import ContractInfo, ContractLog, MicroBlock, MiddlewareConfig, MiddlewareStatus
from .interfaces import MiddlewareClientInterface

T = TypeVar('T')


def _is_permanent(error: Exception) -> bool:
    # client errors are not retried, server errors and connection problems are
    return (
        isinstance(error, MiddlewareError)
        and error.status_code is not None
        and error.status_code < 500
    )


class MiddlewareHttpClient(MiddlewareClientInterface):
    """
    HTTP client for the chain middleware v3 API.

    Every request goes through a shared requests.Session and is retried with
    exponential backoff. Paginated endpoints are followed through their `next`
    links.
    """

    def __init__(self, config: MiddlewareConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.url.rstrip('/')
        self.session = session or requests.Session()
        self.logger = IndexerLogger.get_logger('clients.middleware')

        self._get_json = backoff.on_exception(
            backoff.expo,
            (requests.RequestException, MiddlewareError),
            max_tries=max(config.max_retries, 1),
            giveup=_is_permanent,
            jitter=None,
            on_backoff=self._log_retry,
        )(self._get_json_once)

    def _log_retry(self, details: Dict[str, Any]) -> None:
        log_with_context(self.logger, WARNING, "Retrying middleware request",
                        url=details['args'][0] if details.get('args') else None,
                        tries=details['tries'],
                        wait=round(details['wait'], 2))

    def _url(self, path: str) -> str:
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_json_once(self, url: str) -> Any:
        response = self.session.get(url, timeout=self.config.timeout)
        if response.status_code >= 400:
            raise MiddlewareError(
                f"Middleware request failed with status {response.status_code}",
                status_code=response.status_code,
                url=url,
            )
        try:
            return msgspec.json.decode(response.content)
        except msgspec.DecodeError as e:
            raise MiddlewareError(f"Invalid JSON from middleware: {e}", url=url) from e

    def _convert(self, data: Any, type_: Type[T], url: str) -> T:
        try:
            return msgspec.convert(data, type_, strict=False)
        except msgspec.ValidationError as e:
            raise MiddlewareError(f"Unexpected middleware response: {e}", url=url) from e

    def _iter_pages(self, path: str) -> Iterator[List[Any]]:
        url: Optional[str] = self._url(path)
        while url:
            page = self._get_json(url)
            if not isinstance(page, dict) or 'data' not in page:
                raise MiddlewareError("Paginated response without data", url=url)

            log_with_context(self.logger, DEBUG, "Fetched middleware page",
                            url=url, items=len(page['data']))
            yield page['data']

            next_path = page.get('next')
            url = self._url(next_path) if next_path else None

    def get_contract(self, address: str) -> ContractInfo:
        url = self._url(f"/v3/contracts/{address}")
        return self._convert(self._get_json(url), ContractInfo, url)

    def get_micro_block(self, micro_block_hash: str) -> MicroBlock:
        url = self._url(f"/v3/micro-blocks/{micro_block_hash}")
        return self._convert(self._get_json(url), MicroBlock, url)

    def get_contract_logs_until_condition(
        self,
        address: str,
        condition: Callable[[ContractLog], bool]
    ) -> List[ContractLog]:
        path = f"/v3/contracts/logs?contract_id={address}&limit={self.config.page_limit}"
        logs: List[ContractLog] = []

        for page in self._iter_pages(path):
            for raw_log in page:
                log = self._convert(raw_log, ContractLog, path)
                if condition(log):
                    return logs
                logs.append(log)

        return logs

    def get_key_block_micro_blocks(self, height: int) -> List[MicroBlock]:
        path = f"/v3/key-blocks/{height}/micro-blocks?limit={self.config.page_limit}"
        micro_blocks: List[MicroBlock] = []
        for page in self._iter_pages(path):
            micro_blocks.extend(self._convert(page, List[MicroBlock], path))
        return micro_blocks

    def get_height(self) -> int:
        url = self._url("/v3/status")
        status = self._convert(self._get_json(url), MiddlewareStatus, url)
        return status.mdw_height
