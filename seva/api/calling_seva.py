"""
Calling Seva records (outreach phone calls).
"""

from typing import Any

from seva.api.base import ResourceApi
from seva.api.models import CallingSeva


class CallingSevaApi(ResourceApi[CallingSeva]):
    route = "/calling-seva"
    record_model = CallingSeva
    label = "Calling seva"

    async def get_all(
        self,
        skip: int | None = None,
        limit: int | None = None,
        status: str | None = None,
        **filters: Any,
    ) -> list[CallingSeva]:
        return await super().get_all(skip=skip, limit=limit, status=status, **filters)
