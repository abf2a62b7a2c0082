"""Legacy IIF conversion.

Parses tab-delimited TRNS/SPL documents into general-journal rows (GL
mode) or vendor-bill rows (AP mode) and renders them as import CSV.

Usage:
    from legacy import LegacyFormatConverter, to_csv
    from core.models import ConversionMode

    rows = LegacyFormatConverter().convert(text, ConversionMode.AP)
    csv_text = to_csv(rows, ConversionMode.AP)
"""

from legacy.converter import (
    ColumnLayout,
    LegacyFormatConverter,
    RecordContext,
    journal_number,
)
from legacy.export import (
    AP_COLUMNS,
    GL_COLUMNS,
    escape_csv_value,
    export_filename,
    to_csv,
)
from legacy.overrides import (
    AP_ACCOUNT_OVERRIDES,
    GL_ACCOUNT_OVERRIDES,
    PAYABLE_ACCOUNT,
    apply_override,
)

__all__ = [
    # Converter
    "ColumnLayout",
    "LegacyFormatConverter",
    "RecordContext",
    "journal_number",
    # Export
    "AP_COLUMNS",
    "GL_COLUMNS",
    "escape_csv_value",
    "export_filename",
    "to_csv",
    # Overrides
    "AP_ACCOUNT_OVERRIDES",
    "GL_ACCOUNT_OVERRIDES",
    "PAYABLE_ACCOUNT",
    "apply_override",
]
