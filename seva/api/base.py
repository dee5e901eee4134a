"""
Base resource interface for the CRUD-shaped backend collections.
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError

from seva.api.models import MessageResponse
from seva.services.client import ApiClient
from seva.services.errors import ApiError

T = TypeVar("T", bound=BaseModel)
M = TypeVar("M", bound=BaseModel)


def invalid_response(error: SchemaError) -> ApiError:
    return ApiError(
        f"Unexpected response from server: {error.error_count()} invalid field(s)",
        status=200,
        code="INVALID_RESPONSE",
        details=error.errors(include_url=False),
    )


def parse_response(model: type[M], payload: Any) -> M:
    """Validate a response body; shape mismatches become an ApiError."""
    try:
        return model.model_validate(payload)
    except SchemaError as e:
        raise invalid_response(e) from e


def _dump(payload: BaseModel | dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """Serialize a request body; dict bodies are forwarded as given, nulls included."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", exclude_unset=partial)
    return dict(payload)


class ResourceApi(Generic[T]):
    """
    Create/list/get/update/delete for one backend collection.

    Subclasses set the route, the record model and the label used in
    success messages. Errors are never caught here: callers receive the
    ApiError raised by the client.
    """

    route: ClassVar[str]
    record_model: ClassVar[type[BaseModel]]
    label: ClassVar[str]

    # Overrides for messages whose wording differs from the label
    created_message: ClassVar[str | None] = None
    updated_message: ClassVar[str | None] = None
    deleted_message: ClassVar[str | None] = None

    def __init__(self, client: ApiClient):
        self.client = client

    def _item_url(self, record_id: str) -> str:
        return f"{self.route}/{record_id}"

    def _parse(self, payload: Any) -> T:
        try:
            return parse_response(self.record_model, payload)  # type: ignore[return-value]
        except ApiError as e:
            self.client.notifier.error(e.message)
            raise

    def _parse_list(self, payload: Any) -> list[T]:
        adapter = TypeAdapter(list[self.record_model])  # type: ignore[name-defined]
        try:
            return adapter.validate_python(payload or [])
        except SchemaError as e:
            error = invalid_response(e)
            self.client.notifier.error(error.message)
            raise error from e

    async def create(self, data: BaseModel | dict[str, Any]) -> T:
        payload = await self.client.post(self.route, _dump(data))
        record = self._parse(payload)
        self.client.notifier.success(
            self.created_message or f"{self.label} created successfully"
        )
        return record

    async def get_all(self, **params: Any) -> list[T]:
        """List records; unset (None) filters are not sent."""
        payload = await self.client.get(self.route, params)
        return self._parse_list(payload)

    async def get_by_id(self, record_id: str) -> T:
        payload = await self.client.get(self._item_url(record_id))
        return self._parse(payload)

    async def update(self, record_id: str, data: BaseModel | dict[str, Any]) -> T:
        payload = await self.client.put(self._item_url(record_id), _dump(data, partial=True))
        record = self._parse(payload)
        self.client.notifier.success(
            self.updated_message or f"{self.label} updated successfully"
        )
        return record

    async def delete(self, record_id: str) -> MessageResponse:
        payload = await self.client.delete(self._item_url(record_id))
        result = parse_response(
            MessageResponse, payload if isinstance(payload, dict) else {}
        )
        self.client.notifier.success(
            self.deleted_message or f"{self.label} deleted successfully"
        )
        return result
