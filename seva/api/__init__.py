"""
Domain API modules and the composition root that wires them together.
"""

from seva.api.auth import AuthApi
from seva.api.book_seva import BookSevaApi
from seva.api.calling_seva import CallingSevaApi
from seva.api.expenses import ExpensesApi
from seva.api.general import GeneralApi
from seva.services.client import ApiClient
from seva.services.notifier import Navigator, Notifier
from seva.services.token_store import TokenStore
from seva.settings import Settings, load_settings


class SevaApi:
    """
    All domain modules sharing one ApiClient.

    Usage:
        async with SevaApi.from_settings() as api:
            await api.auth.login_init({"username": email, "password": pw})
            await api.auth.verify_otp({"email": email, "code": code})
            records = await api.book_seva.get_all(skip=0, limit=20)
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self.auth = AuthApi(client)
        self.book_seva = BookSevaApi(client)
        self.calling_seva = CallingSevaApi(client)
        self.expenses = ExpensesApi(client)
        self.general = GeneralApi(client)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        notifier: Notifier | None = None,
        navigator: Navigator | None = None,
    ) -> "SevaApi":
        """Construct the shared services once and inject them."""
        settings = settings or load_settings()
        client = ApiClient(
            settings,
            token_store=TokenStore(settings.token_path),
            notifier=notifier,
            navigator=navigator,
        )
        return cls(client)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "SevaApi":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = [
    "SevaApi",
    "AuthApi",
    "BookSevaApi",
    "CallingSevaApi",
    "ExpensesApi",
    "GeneralApi",
]
