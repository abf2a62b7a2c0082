"""Schema-tolerant column lookup.

Payment-processor exports name the same logical field differently
("Created at", "Date", "Processed at"...). A `FieldSpec` lists the accepted
header names for one logical field in priority order; a `ColumnResolver`
intersects those lists with one file's header row once, so per-row lookup
is a short walk over headers known to exist.

Empty and whitespace-only cells count as absent, so a later candidate (or
the default) is used when an earlier column is present but blank.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class FieldSpec:
    """Candidate header names for one logical field."""
    name: str
    candidates: Tuple[str, ...]
    default: Optional[str] = None
    first_column_fallback: bool = False


class ColumnResolver:
    """Per-file lookup table from logical field name to present headers.

    Usage:
        resolver = ColumnResolver(reader.fieldnames, profile.fields)
        for record in reader:
            when = resolver.get(record, "timestamp")
    """

    def __init__(self, headers: Sequence[str], fields: Sequence[FieldSpec]):
        self.headers: List[str] = [h.strip() for h in headers if h is not None]
        present = set(self.headers)

        self._specs: Dict[str, FieldSpec] = {}
        self._columns: Dict[str, List[str]] = {}

        for spec in fields:
            columns = [c for c in spec.candidates if c in present]
            if spec.first_column_fallback and self.headers and self.headers[0] not in columns:
                columns.append(self.headers[0])
            self._specs[spec.name] = spec
            self._columns[spec.name] = columns

    def columns_for(self, field: str) -> List[str]:
        """Headers consulted for a field, in priority order."""
        return list(self._columns.get(field, []))

    def has(self, field: str) -> bool:
        """True when at least one candidate header is present in the file."""
        return bool(self._columns.get(field))

    def get(self, record: Mapping[str, Optional[str]], field: str) -> Optional[str]:
        """First non-blank value for `field`, else the field's default."""
        for column in self._columns.get(field, ()):
            value = record.get(column)
            if value is None:
                continue
            value = value.strip()
            if value:
                return value

        spec = self._specs.get(field)
        return spec.default if spec else None
