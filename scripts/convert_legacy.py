"""
Convert a tab-delimited IIF document into a QuickBooks import CSV.

Writes <stem>_qbo.csv next to the input unless --out is given.

Usage:
    python scripts/convert_legacy.py journal.iif
    python scripts/convert_legacy.py bills.iif --mode AP --out bills.csv
"""

import argparse
from pathlib import Path

import sys
sys.path.append(str(Path(__file__).resolve().parents[1]))

from core.errors import FormatError
from core.models import ConversionMode
from core.observability import configure_logging
from legacy import LegacyFormatConverter, export_filename, to_csv


def main():
    parser = argparse.ArgumentParser(description="Convert a legacy IIF document to CSV")
    parser.add_argument("document", type=Path, help="IIF file")
    parser.add_argument(
        "--mode",
        type=str.upper,
        choices=[m.value for m in ConversionMode],
        default=ConversionMode.GL.value,
        help="GL for journal entries, AP for vendor bills",
    )
    parser.add_argument("--out", type=Path, default=None, help="Output CSV path")
    args = parser.parse_args()
    mode = ConversionMode(args.mode)

    configure_logging()

    text = args.document.read_text(encoding="utf-8-sig")
    try:
        rows = LegacyFormatConverter().convert(text, mode)
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    out_path = args.out or args.document.with_name(export_filename(args.document.name))
    out_path.write_text(to_csv(rows, mode), encoding="utf-8")
    print(f"Wrote {len(rows)} rows to {out_path}")


if __name__ == "__main__":
    main()
