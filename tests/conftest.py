import time
from typing import Any, Callable

import httpx
import pytest
from jose import jwt

from seva.services.client import ApiClient
from seva.services.retry import RetryPolicy
from seva.settings import Settings

BASE_URL = "http://test"


class FakeSleep:
    """Records backoff delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_token(exp_offset: float = 3600, **claims: Any) -> str:
    payload = {"sub": "a@b.com", "exp": int(time.time() + exp_offset), **claims}
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def json_response(status: int = 200, body: Any = None) -> httpx.Response:
    return httpx.Response(status, json=body)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_url=BASE_URL, retry_attempts=3, retry_delay=1.0)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def make_client(settings: Settings, fake_sleep: FakeSleep) -> Callable[..., ApiClient]:
    def factory(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> ApiClient:
        policy = RetryPolicy(
            max_retries=settings.retry_attempts,
            base_delay=settings.retry_delay,
            sleep=fake_sleep,
        )
        return ApiClient(
            settings,
            retry_policy=policy,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return factory
