"""
Helpers for working with fetched record lists: paging, search, totals
and CSV export.
"""

import csv
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Sequence

from loguru import logger
from pydantic import BaseModel

from seva.api.models import CallingSeva, Expense

BOOK_NAMES = (
    "gyan ganga (hindi)",
    "gyan ganga (english)",
    "gyan ganga (malayalam)",
    "gyan ganga (tamil)",
    "gyan ganga (kannada)",
    "gyan ganga (bengali)",
    "gyan ganga (assam)",
    "gyan ganga (odia)",
    "gyan ganga (nepali)",
    "jine ki raah (hindi)",
    "jine ki raah (english)",
    "jine ki raah (malayalam)",
    "jine ki raah (tamil)",
    "jine ki raah (kannada)",
    "jine ki raah (bengali)",
    "jine ki raah (assam)",
    "jine ki raah (odia)",
    "jine ki raah (nepali)",
)

CALLING_SEVA_HEADERS = ["Date", "Address", "Mobile", "Status", "Assigned Bhagat", "Remarks"]
SEARCH_FIELDS = ("address", "mobile_no", "assigned_bhagat_name", "remarks")
MISSING = "N/A"


def page_params(page: int, per_page: int) -> dict[str, int]:
    """Translate a 1-based page number into skip/limit parameters."""
    if page < 1 or per_page < 1:
        raise ValueError("page and per_page must be positive")
    return {"skip": (page - 1) * per_page, "limit": per_page}


def estimate_total_pages(page: int, per_page: int, fetched: int) -> int:
    """
    Guess the page count from the size of the current page.

    The backend returns no total: a short page is the last one, a full
    page means there may be one more.
    """
    if fetched < per_page:
        return page
    return page + 1


def search_records(
    records: Sequence[BaseModel],
    term: str,
    fields: Iterable[str] = SEARCH_FIELDS,
) -> list[BaseModel]:
    """Case-insensitive substring match on any of `fields`."""
    needle = term.strip().lower()
    if not needle:
        return list(records)

    fields = tuple(fields)
    matches = []
    for record in records:
        for field in fields:
            value = getattr(record, field, None)
            if value and needle in str(value).lower():
                matches.append(record)
                break
    return matches


def filter_expenses(
    expenses: Sequence[Expense],
    term: str = "",
    category: str = "all",
) -> list[Expense]:
    """Expenses whose item name or category contains `term`, limited to `category` unless it is "all"."""
    needle = term.lower()
    return [
        expense
        for expense in expenses
        if (not needle or needle in expense.item_name.lower() or needle in expense.category.lower())
        and (category == "all" or expense.category == category)
    ]


def total_expenses(expenses: Iterable[Expense]) -> float:
    return sum(expense.total_amount for expense in expenses)


def format_date(value: str | None) -> str:
    """Render an ISO date as e.g. '05 Jan 2024'."""
    if not value:
        return MISSING
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(value[:10]), datetime.min.time())
        except ValueError:
            return value
    return parsed.strftime("%d %b %Y")


def format_calling_records(
    records: Iterable[CallingSeva],
) -> tuple[list[str], list[list[Any]]]:
    """Build the header row and data rows for a calling seva export."""
    rows = [
        [
            format_date(record.date),
            record.address,
            record.mobile_no,
            record.status,
            record.assigned_bhagat_name,
            record.remarks or MISSING,
        ]
        for record in records
    ]
    return list(CALLING_SEVA_HEADERS), rows


def export_to_csv(
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    path: Path,
) -> Path:
    """Write rows to a CSV file, adding the .csv suffix if missing."""
    if path.suffix != ".csv":
        path = path.with_suffix(".csv")
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        for row in rows:
            writer.writerow(row)
            count += 1

    logger.info(f"Exported {count} rows to {path}")
    return path
