"""
Backend-provided option lists (coordinators, drivers, statuses, callers).
"""

from seva.api.base import parse_response
from seva.api.models import Constants
from seva.services.client import ApiClient


class GeneralApi:
    CONSTANTS_PATH = "/general/constants"

    def __init__(self, client: ApiClient):
        self.client = client
        self.current: Constants | None = None

    async def get_constants(self) -> Constants:
        """Fetch the option lists and remember the latest copy."""
        payload = await self.client.get(self.CONSTANTS_PATH)
        self.current = parse_response(Constants, payload)
        return self.current
