"""
Book Seva records (book distribution).
"""

from typing import Any

from seva.api.base import ResourceApi
from seva.api.models import BookSeva


class BookSevaApi(ResourceApi[BookSeva]):
    route = "/book-seva"
    record_model = BookSeva
    label = "Book seva"

    async def get_all(
        self,
        skip: int | None = None,
        limit: int | None = None,
        from_date: str | None = None,
        to_date: str | None = None,
        **filters: Any,
    ) -> list[BookSeva]:
        return await super().get_all(
            skip=skip, limit=limit, from_date=from_date, to_date=to_date, **filters
        )
