"""Tagged note blocks appended by side-effect-gated stage changes."""

from __future__ import annotations

REJECTION_TAG = "Rejection Reason"
PAYMENT_TAG = "Payment Received"


def format_amount(amount: float, currency_symbol: str = "₱") -> str:
    return f"{currency_symbol}{amount:,.2f}"


def append_note_block(existing: str | None, tag: str, body: str) -> str:
    """Append ``[tag] body`` after a blank line, keeping any prior note text."""
    block = f"[{tag}] {body.strip()}"
    if existing and existing.strip():
        return f"{existing.rstrip()}\n\n{block}"
    return block
