"""
Recipient resolution for the GiftBox SDK.

Turns addresses and name-service aliases into canonical addresses, with a
TTL cache and a static fallback table.
"""
from .cache import ResolutionCache
from .lookup import AliasLookup, Web3AliasLookup
from .resolver import RecipientResolver, format_address, normalize_alias

__all__ = [
    'AliasLookup',
    'RecipientResolver',
    'ResolutionCache',
    'Web3AliasLookup',
    'format_address',
    'normalize_alias',
]
