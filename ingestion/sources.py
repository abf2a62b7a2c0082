"""Source profiles for the payment-processor exports we ingest.

Each profile names the candidate headers for every logical field and the
kind-specific row policies (exclusions, fixed labels, identifier prefix).
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from core.models import SourceKind
from ingestion.columns import FieldSpec


@dataclass(frozen=True)
class SourceProfile:
    """Column candidates and row policies for one source kind."""
    kind: SourceKind
    fields: Tuple[FieldSpec, ...]
    # Logical fields joined with a space to form the timestamp; all required
    timestamp_fields: Tuple[str, ...] = ("timestamp",)
    reference_prefix: str = "Line"
    fixed_card_brand: Optional[str] = None
    excluded_types: FrozenSet[str] = field(default_factory=frozenset)
    drop_all_zero: bool = False


SHOPIFY_PROFILE = SourceProfile(
    kind=SourceKind.SHOPIFY,
    fields=(
        FieldSpec(
            "timestamp",
            ("Created at", "Date", "Processed at", "Occurred at", "Day"),
            first_column_fallback=True,
        ),
        FieldSpec("reference", ("Name", "Order", "Order ID", "ID")),
        FieldSpec("amount", ("Amount", "Total", "Gross")),
        FieldSpec("fee", ("Fee", "Fees", "Transaction Fee")),
        FieldSpec("net", ("Net", "Net Amount")),
        FieldSpec("status", ("Status", "Financial Status", "Type"), default="Unknown"),
        FieldSpec("customer", ("Billing Name", "Customer", "Source"), default="Internal/Guest"),
        FieldSpec("currency", ("Currency",), default="USD"),
        FieldSpec("card_brand", ("Card Brand", "Brand", "Payment Method", "Card"), default="N/A"),
    ),
    reference_prefix="Line",
)


PAYPAL_PROFILE = SourceProfile(
    kind=SourceKind.PAYPAL,
    fields=(
        FieldSpec("date", ("Date",)),
        FieldSpec("time", ("Time",)),
        FieldSpec("reference", ("Transaction ID",)),
        FieldSpec("amount", ("Gross", "Amount")),
        FieldSpec("fee", ("Fee",)),
        FieldSpec("net", ("Net",)),
        FieldSpec("status", ("Type",), default="Unknown"),
        FieldSpec("customer", ("Name",), default="Unknown"),
        FieldSpec("currency", ("Currency",), default="USD"),
    ),
    timestamp_fields=("date", "time"),
    reference_prefix="PP",
    fixed_card_brand="PayPal",
    # Cash-outs are not sales; keeping them breaks end-of-day balancing
    excluded_types=frozenset({"General Withdrawal", "User Initiated Withdrawal"}),
    drop_all_zero=True,
)


_PROFILES = {
    SourceKind.SHOPIFY: SHOPIFY_PROFILE,
    SourceKind.PAYPAL: PAYPAL_PROFILE,
}


def get_profile(kind: SourceKind) -> SourceProfile:
    """Look up the profile for a source kind."""
    try:
        return _PROFILES[SourceKind(kind)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown source kind: {kind!r}")
