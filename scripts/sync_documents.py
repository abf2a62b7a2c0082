"""
Convert an IIF document and submit it to QuickBooks Online.

Reads QBO_REALM_ID / QBO_ACCESS_TOKEN (and the other QBO_* settings) from
the environment or .env. Each journal or bill is submitted on its own;
failures are listed at the end.

Usage:
    python scripts/sync_documents.py journal.iif
    python scripts/sync_documents.py bills.iif --mode AP --dry-run
"""

import argparse
import asyncio
from pathlib import Path

import sys
sys.path.append(str(Path(__file__).resolve().parents[1]))

from connectors import LedgerConfig, create_connector
from core.config import get_settings
from core.errors import FormatError
from core.models import ConversionMode
from core.observability import configure_logging
from legacy import LegacyFormatConverter
from name_resolver import NameDirectory
from sync import SyncReconciler, SyncResult, group_rows


async def sync_document(text: str, mode: ConversionMode) -> SyncResult:
    rows = LegacyFormatConverter().convert(text, mode)

    connector = create_connector(LedgerConfig.from_settings(get_settings()))
    try:
        if not await connector.connect():
            raise RuntimeError("QuickBooks session is missing or expired")

        reconciler = SyncReconciler(connector, NameDirectory())
        counts = await reconciler.refresh_mappings()
        print(f"Loaded {counts['accounts']} accounts, {counts['vendors']} vendors")

        return await reconciler.submit(rows, mode)
    finally:
        await connector.disconnect()


def main():
    parser = argparse.ArgumentParser(description="Submit a legacy IIF document to QuickBooks")
    parser.add_argument("document", type=Path, help="IIF file")
    parser.add_argument(
        "--mode",
        type=str.upper,
        choices=[m.value for m in ConversionMode],
        default=ConversionMode.GL.value,
        help="GL for journal entries, AP for vendor bills",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Convert and list the documents without submitting",
    )
    args = parser.parse_args()
    mode = ConversionMode(args.mode)

    configure_logging()
    text = args.document.read_text(encoding="utf-8-sig")

    if args.dry_run:
        try:
            rows = LegacyFormatConverter().convert(text, mode)
        except FormatError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        for doc_no, group in group_rows(rows, mode).items():
            print(f"  {doc_no}: {len(group)} line(s)")
        return

    if not get_settings().qbo_configured:
        print("Error: set QBO_REALM_ID and QBO_ACCESS_TOKEN", file=sys.stderr)
        sys.exit(1)

    try:
        result = asyncio.run(sync_document(text, mode))
    except (FormatError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("\n=== SYNC RESULT ===")
    print(f"  succeeded: {result.success_count}")
    print(f"  failed:    {result.failure_count}")
    for error in result.errors:
        print(f"  - {error}")
    print("===================\n")

    if result.failure_count:
        sys.exit(2)


if __name__ == "__main__":
    main()
