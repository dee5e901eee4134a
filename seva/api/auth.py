"""
Two-step login (password, then emailed one-time code) and session calls.
"""

from typing import Any

from loguru import logger

from seva.api.base import parse_response
from seva.api.models import (
    LoginInitRequest,
    LoginInitResponse,
    MessageResponse,
    TokenResponse,
    User,
    VerifyOtpRequest,
)
from seva.services.client import LOGIN_INIT_PATH, VERIFY_OTP_PATH, ApiClient


class AuthApi:
    ME_PATH = "/auth/me"
    LOGOUT_PATH = "/auth/logout"

    def __init__(self, client: ApiClient):
        self.client = client

    async def login_init(
        self, data: LoginInitRequest | dict[str, Any]
    ) -> LoginInitResponse | TokenResponse:
        """
        Submit email and password.

        The backend normally answers with an OTP-pending message. Some
        deployments skip the code step and return a credential directly;
        that credential is stored like a verified one.
        """
        request = LoginInitRequest.model_validate(data)
        payload = await self.client.post(LOGIN_INIT_PATH, request.model_dump())

        if isinstance(payload, dict) and payload.get("access_token"):
            return self._store(parse_response(TokenResponse, payload))
        return parse_response(
            LoginInitResponse, payload if isinstance(payload, dict) else {}
        )

    async def verify_otp(self, data: VerifyOtpRequest | dict[str, Any]) -> TokenResponse:
        """Exchange the one-time code for a credential and store it."""
        request = VerifyOtpRequest.model_validate(data)
        payload = await self.client.post(VERIFY_OTP_PATH, request.model_dump())
        return self._store(parse_response(TokenResponse, payload))

    async def get_current_user(self) -> User:
        payload = await self.client.get(self.ME_PATH)
        return parse_response(User, payload)

    async def logout(self) -> MessageResponse:
        """End the session; the local credential is dropped even on failure."""
        try:
            payload = await self.client.post(self.LOGOUT_PATH)
            return parse_response(
                MessageResponse, payload if isinstance(payload, dict) else {}
            )
        finally:
            self.client.tokens.clear()
            logger.info("Logged out, stored token cleared")

    def is_authenticated(self) -> bool:
        return self.client.is_authenticated()

    def _store(self, token: TokenResponse) -> TokenResponse:
        self.client.tokens.set(token.access_token)
        logger.info("Login verified, token stored")
        return token
