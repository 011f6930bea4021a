"""
Interfaces for the chain middleware client.

The importer and validator depend on this interface only, so tests can
substitute mocks and deployments can point at any middleware instance.
"""
from abc import ABC, abstractmethod
from typing import Callable, List

from ..types import ContractInfo, ContractLog, MicroBlock


class MiddlewareClientInterface(ABC):
    """Interface for chain middleware client implementations."""

    @abstractmethod
    def get_contract(self, address: str) -> ContractInfo:
        """
        Get contract metadata.

        Args:
            address: Contract address

        Returns:
            Contract info including the creating transaction and micro-block
        """
        pass

    @abstractmethod
    def get_micro_block(self, micro_block_hash: str) -> MicroBlock:
        """
        Get a micro-block by hash.

        Args:
            micro_block_hash: Micro-block hash

        Returns:
            Micro-block with height and time
        """
        pass

    @abstractmethod
    def get_contract_logs_until_condition(
        self,
        address: str,
        condition: Callable[[ContractLog], bool]
    ) -> List[ContractLog]:
        """
        Get event logs of a contract, newest first, until condition holds.

        Args:
            address: Contract address
            condition: Stop predicate, the first log it accepts is not returned

        Returns:
            Logs newer than the stopping log
        """
        pass

    @abstractmethod
    def get_key_block_micro_blocks(self, height: int) -> List[MicroBlock]:
        """
        Get all canonical micro-blocks at a key-block height.

        Args:
            height: Key-block height

        Returns:
            Micro-blocks of that generation
        """
        pass

    @abstractmethod
    def get_height(self) -> int:
        """
        Get the latest height synced by the middleware.

        Returns:
            Middleware height
        """
        pass
