"""
Ingest payment-processor exports and print the daily report.

Usage:
    python scripts/ingest_ledger.py --kind SHOPIFY orders_jan.csv orders_feb.csv
    python scripts/ingest_ledger.py --kind PAYPAL activity.csv --json
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import List

import sys
sys.path.append(str(Path(__file__).resolve().parents[1]))

from core.errors import ParseError
from core.models import ReportSummary, SourceKind
from core.money import format_amount
from core.observability import configure_logging
from ingestion import LedgerIngestor


async def ingest(paths: List[Path], kind: SourceKind) -> ReportSummary:
    return await LedgerIngestor().ingest_paths(paths, kind)


def print_report(summary: ReportSummary) -> None:
    print(f"\n=== LEDGER REPORT {summary.date_range} ===")
    for group in summary.daily_groups:
        print(
            f"\n{group.date}: {group.count} txn  "
            f"gross {format_amount(group.subtotal)}  "
            f"fees {format_amount(group.subtotal_fees)}  "
            f"net {format_amount(group.subtotal_net)}"
        )
        for sub in group.source_subtotals():
            print(f"    {sub.source_file}: {sub.count} txn, net {format_amount(sub.subtotal_net)}")
        for t in group.transactions:
            print(
                f"  {t.timestamp:%Y-%m-%d %H:%M}  {t.order_number:<16} {t.customer_name:<24} "
                f"{format_amount(t.amount):>10} {format_amount(t.fee):>8} {format_amount(t.net):>10}  {t.card_brand}"
            )
    print(
        f"\nTotal: {summary.transaction_count} txn  gross {format_amount(summary.total_amount)}  "
        f"fees {format_amount(summary.total_fees)}  net {format_amount(summary.total_net)}"
    )


def main():
    parser = argparse.ArgumentParser(description="Ingest payment-processor CSV exports")
    parser.add_argument("files", nargs="+", type=Path, help="CSV export files")
    parser.add_argument(
        "--kind",
        type=str.upper,
        choices=[k.value for k in SourceKind],
        default=SourceKind.SHOPIFY.value,
        help="Source kind of every file in the batch",
    )
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    args = parser.parse_args()

    configure_logging()

    try:
        summary = asyncio.run(ingest(args.files, SourceKind(args.kind)))
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
    else:
        print_report(summary)


if __name__ == "__main__":
    main()
