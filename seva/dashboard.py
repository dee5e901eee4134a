"""
Dashboard summary: record counts per section and the expense total.
"""

import asyncio

from pydantic import BaseModel

from seva.api import SevaApi
from seva.records import total_expenses


class DashboardSummary(BaseModel):
    book_seva_count: int
    calling_seva_count: int
    expense_count: int
    expense_total: float


async def collect_dashboard_summary(api: SevaApi, limit: int = 100) -> DashboardSummary:
    """
    Fetch the first `limit` records of each section concurrently.

    Raises:
        ApiError: If any of the three lists cannot be fetched
    """
    books, calls, expenses = await asyncio.gather(
        api.book_seva.get_all(skip=0, limit=limit),
        api.calling_seva.get_all(skip=0, limit=limit),
        api.expenses.get_all(skip=0, limit=limit),
    )
    return DashboardSummary(
        book_seva_count=len(books),
        calling_seva_count=len(calls),
        expense_count=len(expenses),
        expense_total=total_expenses(expenses),
    )
