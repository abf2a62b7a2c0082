"""Name Resolver Data Models.

This module defines the Pydantic models for name resolution:
- MatchType: How a label was matched
- NameResolution: The outcome of resolving one label against a map
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MatchType(str, Enum):
    """How the label was matched."""
    EXACT = "exact"        # Trimmed label equals a key
    PREFIX = "prefix"      # Label and key overlap as prefixes
    NO_MATCH = "no_match"  # Nothing matched


class NameResolution(BaseModel):
    """Result of resolving a label.

    Attributes:
        label: The label as supplied
        match_type: How the match was made
        matched_key: The map key that matched (if any)
        identifier: The external identifier for that key (if any)
    """
    label: str = Field(..., description="Label as supplied")
    match_type: MatchType = Field(default=MatchType.NO_MATCH)
    matched_key: Optional[str] = Field(default=None, description="Map key that matched")
    identifier: Optional[str] = Field(default=None, description="External identifier")

    @property
    def is_resolved(self) -> bool:
        return self.identifier is not None
