"""Plain-text hand-off of a converted contact to the web developer."""

from __future__ import annotations

from typing import Any

from app.core.config import get_config
from app.pipeline.notes import format_amount

NOT_AVAILABLE = "N/A"


def _text(value: Any) -> str:
    return value if value else NOT_AVAILABLE


def _money(value: float | None, currency_symbol: str) -> str:
    if not value:
        return NOT_AVAILABLE
    return format_amount(value, currency_symbol)


def build_developer_brief(contact: Any, currency_symbol: str | None = None) -> str:
    symbol = currency_symbol if currency_symbol is not None else get_config().CURRENCY_SYMBOL
    lines = [
        "Web Development Request",
        "",
        f"Business: {_text(contact.business_name)}",
        f"Contact Name: {_text(contact.contact_name)}",
        f"Email: {_text(contact.email)}",
        f"Phone: {_text(contact.mobile_number)}",
        f"Link: {_text(contact.link)}",
        f"Demo Link: {_text(contact.demo_link)}",
        f"Output Link: {_text(contact.output_link)}",
        f"Deposit: {_money(contact.deposit, symbol)}",
        f"Deal Price: {_money(contact.value, symbol)}",
        f"Sales Stage: {_text(contact.sales_stage)}",
        f"Notes: {_text(contact.notes)}",
        f"Demo Instructions: {_text(contact.demo_instructions)}",
    ]
    return "\n".join(lines)
