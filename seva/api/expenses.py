from typing import Any

from seva.api.base import ResourceApi
from seva.api.models import Expense


class ExpensesApi(ResourceApi[Expense]):
    route = "/expenses"
    record_model = Expense
    label = "Expense"
    updated_message = "Expenses updated successfully"

    async def get_all(
        self,
        skip: int | None = None,
        limit: int | None = None,
        from_date: str | None = None,
        to_date: str | None = None,
        **filters: Any,
    ) -> list[Expense]:
        return await super().get_all(
            skip=skip, limit=limit, from_date=from_date, to_date=to_date, **filters
        )
