"""Entry fee parsing."""

import re
from typing import Optional

from show_pipeline.models import EntryFee

FREE_WORDS = {"free", "none", "n/a"}
AMOUNT_PATTERN = re.compile(r"\$?\s*(\d+(?:\.\d+)?)")


def parse_entry_fee(fee_str: Optional[str]) -> EntryFee:
    """Parse admission text.

    "free"/"none"/"n/a" -> 0, "$5 adults" -> 5, "donation" -> None with the
    text kept as description. Empty input means the fee wasn't announced.
    """
    if not fee_str or not fee_str.strip():
        return EntryFee()

    normalized = fee_str.strip().lower()
    if normalized in FREE_WORDS:
        return EntryFee(amount=0, description="Free admission", original=fee_str)

    match = AMOUNT_PATTERN.search(normalized)
    if match:
        return EntryFee(amount=float(match.group(1)), description=fee_str, original=fee_str)

    return EntryFee(amount=None, description=fee_str, original=fee_str)
