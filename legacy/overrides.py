"""Static account-label overrides for legacy conversions.

Legacy exports carry bare account codes ("0-401-0"); the remote chart of
accounts uses "code NAME" labels. Keys are matched exactly; codes not
listed pass through unchanged.
"""

from types import MappingProxyType
from typing import Mapping


# Account code that carries the payable balance on bill headers
PAYABLE_ACCOUNT = "0-201-0"

GL_ACCOUNT_OVERRIDES: Mapping[str, str] = MappingProxyType({
    "0-115-0": "0-115-0 INVENTORY - PARTS",
    "0-119-0": "0-119-0 OTHER CC CLEARING",
    "0-121-0": "0-121-0 UNDEPOSITED FUNDS",
    "WEB CC": "0-122-0 WEB CC",
    "0-131-0": "0-131-0 TRANSFER CLEARING",
    "0-202-0": "0-202-0 ACCOUNTS PAYABLE CLEARING",
    "0-203-0": "0-203-0 SALES TAX PAYABLE",
    "0-251-0": "0-251-0 CUSTOMER DEPOSITS",
    "0-310-0": "0-310-0 INTERFACE CORRECTION ACCT",
    "0-401-0": "0-401-0 SALES",
    "0-405-0": "0-405-0 SHIPPING & HANDLING FEES",
    "0-490-0": "0-490-0 SALES RETURNS AND ALLOWANCES",
    "0-501-0": "0-501-0 COST OF GOODS SOLD",
})

AP_ACCOUNT_OVERRIDES: Mapping[str, str] = MappingProxyType({
    "0-201-0": "0-201-0 ACCOUNTS PAYABLE",
    "0-202-0": "0-202-0 ACCOUNTS PAYABLE CLEARING",
    "0-682-0": "0-682-0 SHIPPING EXPENSE",
})


def apply_override(account: str, overrides: Mapping[str, str]) -> str:
    """Override label for `account`, or `account` itself."""
    return overrides.get(account, account)
