"""
Seva dashboard client entry point.
Logs in (password + one-time code) when needed and prints the dashboard summary.
"""

import asyncio
import getpass

from loguru import logger

from seva.api import SevaApi
from seva.dashboard import collect_dashboard_summary
from seva.services.errors import ApiError, format_error
from seva.settings import load_settings


async def login(api: SevaApi) -> None:
    """Interactive two-step login."""
    email = input("Email: ").strip()
    password = getpass.getpass("Password: ")

    result = await api.auth.login_init({"username": email, "password": password})
    if api.auth.is_authenticated():
        return

    logger.info(getattr(result, "msg", "") or "Verification code sent")
    code = input("Verification code: ").strip()
    await api.auth.verify_otp({"email": email, "code": code})


async def main() -> None:
    settings = load_settings()
    logger.info(f"Starting seva client against {settings.api_url}")

    async with SevaApi.from_settings(settings) as api:
        try:
            if not api.auth.is_authenticated():
                await login(api)

            user = await api.auth.get_current_user()
            logger.info(f"Signed in as {user.name or user.email}")

            summary = await collect_dashboard_summary(api)
            logger.info(
                f"Book seva: {summary.book_seva_count} | "
                f"Calling seva: {summary.calling_seva_count} | "
                f"Expenses: {summary.expense_count} "
                f"(total {summary.expense_total:.2f})"
            )
        except ApiError as e:
            logger.error(f"Request failed: {format_error(e)}")
        except KeyboardInterrupt:
            logger.info("Interrupted")


if __name__ == "__main__":
    asyncio.run(main())
