"""
Recipient resolution: address or alias in, canonical address out.
"""
import asyncio
import logging
from typing import Dict, Iterable, Mapping, Optional

from cachetools import TTLCache
from ens.exceptions import InvalidName
from ens.utils import normalize_name

from ..config import ALIAS_LOOKUP_CONCURRENCY, KNOWN_ALIASES
from ..exceptions import ResolutionError
from ..models import (
    RecipientKind,
    ResolutionCacheEntry,
    ResolutionResult,
    ResolutionSource,
    classify_recipient,
    is_valid_address,
)
from ._rate_limited_log import rate_limited_log
from .cache import ResolutionCache
from .lookup import AliasLookup, Web3AliasLookup

logger = logging.getLogger(__name__)


def normalize_alias(name: str) -> str:
    """
    Canonical form of an alias; applying it twice changes nothing.

    Raises:
        InvalidName: If the name cannot be normalized
    """
    return normalize_name(name.strip())


def format_address(address: str) -> str:
    """Shortened form for display, e.g. ``0xd8dA...6045``."""
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"


class RecipientResolver:
    """
    Resolves recipient input to a canonical address.

    Raw addresses pass straight through without touching the cache. Aliases
    are normalized, looked up through the cache, then the lookup service, then
    the static fallback table. Every alias outcome, success or failure, is
    cached. Lookup errors never propagate out of ``resolve``.
    """

    def __init__(
        self,
        lookup: Optional[AliasLookup] = None,
        cache: Optional[ResolutionCache] = None,
        fallback: Optional[Mapping[str, str]] = None,
        concurrency: int = ALIAS_LOOKUP_CONCURRENCY,
        logger: Optional[logging.Logger] = None
    ):
        self.lookup = lookup if lookup is not None else Web3AliasLookup()
        self.cache = cache if cache is not None else ResolutionCache()
        self.logger = logger or logging.getLogger(__name__)
        self.concurrency = concurrency
        table = KNOWN_ALIASES if fallback is None else fallback
        self.fallback: Dict[str, str] = {normalize_alias(k): v for k, v in table.items()}
        self._reverse_cache: TTLCache = TTLCache(maxsize=1024, ttl=self.cache.ttl, timer=self.cache.timer)

    async def resolve(self, raw: str) -> ResolutionResult:
        """
        Resolve a recipient string.

        Args:
            raw: Address or alias as typed by the user

        Returns:
            ResolutionResult with either an address or an error code
        """
        identifier = classify_recipient(raw)
        if identifier.kind == RecipientKind.ADDRESS:
            return ResolutionResult(address=identifier.value, source=ResolutionSource.DIRECT)
        if identifier.kind == RecipientKind.ALIAS:
            return await self._resolve_alias(identifier.value)
        return ResolutionResult(source=ResolutionSource.DIRECT, error=ResolutionError.INVALID_FORMAT)

    async def _resolve_alias(self, name: str) -> ResolutionResult:
        try:
            key = normalize_alias(name)
        except InvalidName as e:
            self.logger.debug(f"Alias {name!r} failed normalization: {e}")
            return ResolutionResult(source=ResolutionSource.ALIAS, error=ResolutionError.INVALID_FORMAT)

        cached = self.cache.get(key)
        if cached is not None:
            self.logger.debug(f"Using cached resolution for {key}")
            return cached.to_result()

        address: Optional[str] = None
        try:
            address = await self.lookup.lookup(key)
        except Exception as e:
            rate_limited_log(f"Alias lookup for {key} failed: {e}", logger_instance=self.logger)

        if address and not is_valid_address(address):
            self.logger.warning(f"Alias service returned malformed address for {key}: {address!r}")
            address = None

        source = ResolutionSource.ALIAS
        error: Optional[ResolutionError] = None
        if not address:
            address = self.fallback.get(key)
            if address:
                source = ResolutionSource.FALLBACK
                self.logger.info(f"Resolved {key} from fallback table")
            else:
                error = ResolutionError.LOOKUP_FAILED

        entry = ResolutionCacheEntry(
            key=key,
            address=address,
            source=source,
            error=error,
            resolved_at=self.cache.now(),
        )
        self.cache.set(entry)
        if error is None:
            self.logger.debug(f"Resolved {key} to {address} ({source.value})")
        return entry.to_result()

    async def resolve_many(self, inputs: Iterable[str]) -> Dict[str, ResolutionResult]:
        """Resolve several recipients, at most ``concurrency`` lookups at a time."""
        semaphore = asyncio.Semaphore(self.concurrency)
        unique = list(dict.fromkeys(inputs))

        async def _one(value: str) -> ResolutionResult:
            async with semaphore:
                return await self.resolve(value)

        results = await asyncio.gather(*(_one(value) for value in unique))
        return dict(zip(unique, results))

    async def reverse_resolve(self, address: str) -> Optional[str]:
        """Primary alias for an address, or None. Failures are cached as None."""
        if not is_valid_address(address):
            return None
        key = address.lower()
        if key in self._reverse_cache:
            return self._reverse_cache[key]
        try:
            name = await self.lookup.reverse(address)
        except Exception as e:
            rate_limited_log(f"Reverse lookup for {address} failed: {e}", logger_instance=self.logger)
            name = None
        self._reverse_cache[key] = name
        return name

    async def display_name(self, address: str) -> str:
        return await self.reverse_resolve(address) or format_address(address)

    def clear_cache(self) -> None:
        self.cache.clear()
        self._reverse_cache.clear()
        self.logger.debug("Resolution caches cleared")
