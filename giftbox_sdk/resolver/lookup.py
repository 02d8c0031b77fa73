"""
Name-service lookups against the alias registry chain.
"""
import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from ens import ENS
from web3 import Web3

from ..config import NetworkConfig
from ..exceptions import LookupFailedError
from ..session import check_rpc_url
from ._rate_limited_log import rate_limited_log

logger = logging.getLogger(__name__)


class AliasLookup(Protocol):
    """Anything that can turn an alias into an address and back"""

    async def lookup(self, name: str) -> Optional[str]:
        """Return the address for a normalized alias, or None if unregistered"""
        ...

    async def reverse(self, address: str) -> Optional[str]:
        """Return the primary alias for an address, or None"""
        ...


class Web3AliasLookup:
    """
    ENS lookups through web3, always on mainnet.

    Endpoints are tried in order; the first one that answers wins, even if
    the answer is "not registered". Only transport errors move on to the
    next endpoint.
    """

    def __init__(
        self,
        rpc_urls: Optional[Sequence[str]] = None,
        timeout: int = 10,
        logger: Optional[logging.Logger] = None
    ):
        self.rpc_urls: List[str] = list(rpc_urls or NetworkConfig.get_alias_rpc_urls())
        if not self.rpc_urls:
            raise ValueError("At least one alias RPC URL is required")
        for url in self.rpc_urls:
            check_rpc_url(url, "alias RPC URL")
        self.logger = logger or logging.getLogger(__name__)
        self._clients = [
            ENS.from_web3(Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout})))
            for url in self.rpc_urls
        ]

    async def lookup(self, name: str) -> Optional[str]:
        return await asyncio.to_thread(self._query, "address", name)

    async def reverse(self, address: str) -> Optional[str]:
        return await asyncio.to_thread(self._query, "name", Web3.to_checksum_address(address))

    def _query(self, method: str, value: str) -> Optional[str]:
        last_error: Optional[Exception] = None
        for url, ns in zip(self.rpc_urls, self._clients):
            try:
                result = getattr(ns, method)(value)
                self.logger.debug(f"ENS {method}({value}) via {url} -> {result}")
                return result or None
            except Exception as e:
                last_error = e
                rate_limited_log(
                    f"ENS {method} lookup via {url} failed: {e}",
                    level="warning",
                    logger_instance=self.logger,
                )
        raise LookupFailedError(
            f"ENS {method} lookup for {value} failed on all endpoints: {last_error}"
        ) from last_error
