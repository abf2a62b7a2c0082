"""Name Resolver Algorithm.

Maps free-text account and vendor labels to remote-ledger identifiers:
1. Exact match on the trimmed label (fast path)
2. Prefix overlap: the first key, in map insertion order, that is a prefix
   of the label or that the label is a prefix of. This lets a bare code
   "0-115-0" find "0-115-0 INVENTORY - PARTS".
3. Not found

When several keys overlap the label, the first-inserted key wins. The
remote catalog order therefore decides ties.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Protocol

from core.observability.logging import get_logger
from name_resolver.models import MatchType, NameResolution

logger = get_logger(__name__)


class CatalogProvider(Protocol):
    """Protocol for remote catalog listings.

    The ledger connector implements this; each item needs `.id` and `.name`.
    """

    async def list_accounts(self) -> List[Any]:
        ...

    async def list_vendors(self) -> List[Any]:
        ...


class NameResolver:
    """Resolves labels against a name -> identifier map.

    Example:
        resolver = NameResolver()
        resolver.resolve("0-115-0", {"0-115-0 INVENTORY - PARTS": "84"})  # "84"
    """

    def match(self, label: Optional[str], mapping: Mapping[str, str]) -> NameResolution:
        """Resolve with details of how the match was made."""
        original = label or ""
        clean = original.strip()
        if not clean:
            return NameResolution(label=original)

        if clean in mapping:
            return NameResolution(
                label=original,
                match_type=MatchType.EXACT,
                matched_key=clean,
                identifier=mapping[clean],
            )

        for key, identifier in mapping.items():
            if key and (clean.startswith(key) or key.startswith(clean)):
                return NameResolution(
                    label=original,
                    match_type=MatchType.PREFIX,
                    matched_key=key,
                    identifier=identifier,
                )

        return NameResolution(label=original)

    def resolve(self, label: Optional[str], mapping: Mapping[str, str]) -> Optional[str]:
        """Identifier for `label` via exact then prefix match, else None."""
        return self.match(label, mapping).identifier

    def resolve_exact(self, label: Optional[str], mapping: Mapping[str, str]) -> Optional[str]:
        """Identifier for the trimmed `label` by exact key only."""
        clean = (label or "").strip()
        if not clean:
            return None
        return mapping.get(clean)


class NameDirectory:
    """Process-lifetime account and vendor maps.

    Both maps are rebuilt wholesale by `refresh()` and only read during a
    sync pass.
    """

    def __init__(
        self,
        accounts: Optional[Dict[str, str]] = None,
        vendors: Optional[Dict[str, str]] = None,
    ):
        self.accounts: Dict[str, str] = dict(accounts or {})
        self.vendors: Dict[str, str] = dict(vendors or {})

    @staticmethod
    def _build_map(items: List[Any]) -> Dict[str, str]:
        mapping: Dict[str, str] = {}
        for item in items:
            name = (item.name or "").strip()
            if name:
                mapping[name] = item.id
        return mapping

    async def refresh(self, provider: CatalogProvider) -> Dict[str, int]:
        """Reload both maps from the remote catalog.

        Both listings are awaited before either map is replaced; a failure
        leaves the previous maps untouched.
        """
        accounts, vendors = await asyncio.gather(
            provider.list_accounts(),
            provider.list_vendors(),
        )

        self.accounts, self.vendors = self._build_map(accounts), self._build_map(vendors)

        counts = {"accounts": len(self.accounts), "vendors": len(self.vendors)}
        logger.info(
            f"Refreshed mappings: {counts['accounts']} accounts, {counts['vendors']} vendors"
        )
        return counts
