"""Response formatting helpers."""

from __future__ import annotations

import math

FINANCIAL_DISCLAIMER = "Informational use only. This is not financial advice."
UNKNOWN = "—"


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(value: float | None) -> str:
    """Whole-rupee amount with Indian digit grouping, e.g. ``₹1,23,457``."""
    if value is None:
        return UNKNOWN
    rounded = math.floor(value + 0.5)
    sign = "-" if rounded < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(rounded)))}"


def format_response(
    title: str,
    lines: list[str],
    source: str | None = None,
    warning: str | None = None,
    include_disclaimer: bool = True,
) -> str:
    chunks: list[str] = [title]
    if source:
        chunks.append(f"Source: {source}")
    if warning:
        chunks.append(f"Warning: {warning}")
    chunks.extend(lines)
    if include_disclaimer:
        chunks.extend(["---", FINANCIAL_DISCLAIMER])
    return "\n".join(chunks)


def line_money(label: str, value: float | None) -> str:
    return f"{label}: {format_inr(value)}"


def line_text(label: str, value: str | None) -> str:
    return f"{label}: {value or UNKNOWN}"
