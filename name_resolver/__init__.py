"""Name Resolver - account and vendor labels to remote-ledger identifiers.

This package maps human-readable labels from converted rows to the opaque
identifiers of the remote ledger:
- Exact match on the trimmed label
- Prefix-overlap match for bare account codes
- NameDirectory holds the refreshed account and vendor maps

Usage:
    from name_resolver import NameDirectory, NameResolver

    directory = NameDirectory()
    await directory.refresh(connector)
    account_id = NameResolver().resolve("0-401-0", directory.accounts)
"""

from name_resolver.models import MatchType, NameResolution
from name_resolver.resolver import CatalogProvider, NameDirectory, NameResolver

__all__ = [
    # Models
    "MatchType",
    "NameResolution",
    # Resolver
    "CatalogProvider",
    "NameDirectory",
    "NameResolver",
]
