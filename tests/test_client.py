import asyncio
import json
from datetime import date
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import json_response, make_token
from seva.services.client import (
    build_query_string,
    clean_params,
    jsonable_body,
    unwrap_envelope,
)
from seva.services.errors import (
    NETWORK_MESSAGE,
    AuthenticationError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from seva.services.notifier import Navigator
from seva.services.token_store import TokenStore


def test_unwrap_envelope():
    assert unwrap_envelope({"data": [1, 2]}) == [1, 2]
    assert unwrap_envelope({"data": None}) is None
    assert unwrap_envelope({"msg": "ok"}) == {"msg": "ok"}
    assert unwrap_envelope([{"data": 1}]) == [{"data": 1}]


def test_clean_params_and_query_string():
    assert clean_params({"skip": 0, "status": None}) == {"skip": 0}
    assert clean_params({"status": None}) is None
    assert clean_params(None) is None
    assert build_query_string({"skip": 0, "limit": 20, "status": None}) == "skip=0&limit=20"


@pytest.mark.asyncio
async def test_bearer_token_attached_when_valid(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(200, {"email": "a@b.com", "name": "A"})

    store = TokenStore()
    token = make_token(3600)
    store.set(token)

    async with make_client(handler, token_store=store) as client:
        assert await client.get("/auth/me") == {"email": "a@b.com", "name": "A"}

    assert seen[0].headers["Authorization"] == f"Bearer {token}"
    assert seen[0].headers["Content-Type"] == "application/json"
    assert seen[0].headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_expired_token_not_attached(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(200, [])

    store = TokenStore()
    store.set(make_token(-5))

    async with make_client(handler, token_store=store) as client:
        await client.get("/expenses")

    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_bootstrap_endpoints_never_carry_token(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(200, {"msg": "ok"})

    store = TokenStore()
    store.set(make_token(3600))

    async with make_client(handler, token_store=store) as client:
        await client.post("/auth/login-init", {"username": "a@b.com", "password": "pw"})
        await client.post("/auth/verify-otp", {"email": "a@b.com", "code": "1"})

    assert all("Authorization" not in request.headers for request in seen)


@pytest.mark.asyncio
async def test_login_init_is_form_encoded(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return json_response(200, {"msg": "otp sent"})

    async with make_client(handler) as client:
        await client.post("/auth/login-init", {"username": "a@b.com", "password": "secret1"})
        await client.post("/expenses", {"item_name": "rice"})

    login, expense = seen
    assert login.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(login.content.decode()) == {
        "username": ["a@b.com"],
        "password": ["secret1"],
    }
    assert expense.headers["Content-Type"] == "application/json"
    assert json.loads(expense.content) == {"item_name": "rice"}


@pytest.mark.asyncio
async def test_envelope_unwrapped_and_empty_body_returns_none(make_client):
    def handler(request):
        if request.method == "DELETE":
            return httpx.Response(204)
        return json_response(200, {"data": {"id": "1"}})

    async with make_client(handler) as client:
        assert await client.get("/expenses/1") == {"id": "1"}
        assert await client.delete("/expenses/1") is None


@pytest.mark.asyncio
async def test_validation_error_details(make_client):
    def handler(request):
        return json_response(400, {"message": "bad input", "errors": {"mobile_no": "invalid"}})

    async with make_client(handler) as client:
        with pytest.raises(ValidationError) as exc_info:
            await client.post("/calling-seva", {"mobile_no": "x"})

    assert exc_info.value.details["mobile_no"] == "invalid"
    assert client.notifier.history[-1].message == "bad input"
    assert client.notifier.history[-1].level == "error"


@pytest.mark.asyncio
async def test_non_json_error_body_uses_fallback(make_client):
    def handler(request):
        return httpx.Response(404, text="<html>missing</html>")

    async with make_client(handler) as client:
        with pytest.raises(NotFoundError) as exc_info:
            await client.get("/book-seva/nope")

    assert exc_info.value.message == "An unexpected error occurred"


@pytest.mark.asyncio
async def test_unauthorized_clears_token_and_redirects(make_client, fake_sleep):
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path == "/auth/me":
            return json_response(401, {"detail": "Token expired"})
        return json_response(200, [])

    store = TokenStore()
    store.set(make_token(3600))
    navigated = []
    navigator = Navigator("/expenses", on_navigate=navigated.append)

    async with make_client(handler, token_store=store, navigator=navigator) as client:
        with pytest.raises(AuthenticationError):
            await client.get("/auth/me")

        assert store.get() is None
        assert navigated == ["/"]
        # no toast for 401, the redirect replaces it
        assert client.notifier.history == []
        assert fake_sleep.delays == []

        await client.get("/book-seva")

    assert "Authorization" in seen[0].headers
    assert "Authorization" not in seen[1].headers


@pytest.mark.asyncio
async def test_unauthorized_on_login_view_does_not_redirect(make_client):
    def handler(request):
        return json_response(401, {"msg": "Invalid credentials"})

    navigated = []
    navigator = Navigator("/login", on_navigate=navigated.append)

    async with make_client(handler, navigator=navigator) as client:
        with pytest.raises(AuthenticationError) as exc_info:
            await client.get("/auth/me")

    assert exc_info.value.message == "Invalid credentials"
    assert navigated == []


@pytest.mark.asyncio
async def test_network_failure_retried_then_raised(make_client, fake_sleep):
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(NetworkError) as exc_info:
            await client.get("/expenses")

    assert exc_info.value.status == 0
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert len(attempts) == 4
    assert fake_sleep.delays == [1.0, 2.0, 4.0]
    assert [n.message for n in client.notifier.history] == [NETWORK_MESSAGE]


@pytest.mark.asyncio
async def test_timeout_is_a_network_error(make_client):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(NetworkError):
            await client.get("/expenses")


@pytest.mark.asyncio
async def test_server_error_recovers_on_retry(make_client, fake_sleep):
    responses = [json_response(503), json_response(500), json_response(200, {"data": [1]})]

    def handler(request):
        return responses.pop(0)

    async with make_client(handler) as client:
        assert await client.get("/expenses") == [1]

    assert fake_sleep.delays == [1.0, 2.0]
    assert client.notifier.history == []


@pytest.mark.asyncio
async def test_server_error_exhausts_retries(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        return json_response(502, {"message": "bad gateway"})

    async with make_client(handler) as client:
        with pytest.raises(ServerError) as exc_info:
            await client.put("/expenses/1", {"quantity": 2})

    assert exc_info.value.status == 502
    assert len(calls) == 4


@pytest.mark.asyncio
async def test_not_found_is_not_retried(make_client, fake_sleep):
    calls = []

    def handler(request):
        calls.append(request)
        return json_response(404, {"message": "no such record"})

    async with make_client(handler) as client:
        with pytest.raises(NotFoundError):
            await client.get("/expenses/9")

    assert len(calls) == 1
    assert fake_sleep.delays == []


@pytest.mark.asyncio
async def test_identical_concurrent_requests_hit_network_once(make_client):
    calls = []

    async def handler(request):
        calls.append(request)
        await asyncio.sleep(0.01)
        return json_response(200, [{"id": "1"}])

    async with make_client(handler) as client:
        first, second = await asyncio.gather(
            client.get("/expenses", {"skip": 0, "limit": 20}),
            client.get("/expenses", {"limit": 20, "skip": 0}),
        )

    assert len(calls) == 1
    assert first == second == [{"id": "1"}]


@pytest.mark.asyncio
async def test_identical_concurrent_failures_reject_together(make_client):
    calls = []

    async def handler(request):
        calls.append(request)
        await asyncio.sleep(0.01)
        return json_response(403, {"message": "not allowed"})

    async with make_client(handler) as client:
        results = await asyncio.gather(
            client.delete("/expenses/1"),
            client.delete("/expenses/1"),
            return_exceptions=True,
        )

    assert len(calls) == 1
    assert results[0] is results[1]
    assert results[0].status == 403
    assert len(client.notifier.history) == 1


@pytest.mark.asyncio
async def test_different_params_are_separate_requests(make_client):
    calls = []

    async def handler(request):
        calls.append(request)
        await asyncio.sleep(0)
        return json_response(200, [])

    async with make_client(handler) as client:
        await asyncio.gather(
            client.get("/expenses", {"skip": 0}),
            client.get("/expenses", {"skip": 20}),
        )

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_loading_flag_held_across_retries(make_client):
    busy_during_attempts = []
    snapshots = []
    client_ref = {}

    def handler(request):
        busy_during_attempts.append(client_ref["client"].is_loading("GET", "/book-seva"))
        raise httpx.ConnectError("down", request=request)

    async with make_client(handler) as client:
        client_ref["client"] = client
        client.subscribe_loading(snapshots.append)
        with pytest.raises(NetworkError):
            await client.get("/book-seva", {"skip": 0})

        assert client.is_loading("GET", "/book-seva") is False

    assert busy_during_attempts == [True, True, True, True]
    assert snapshots[0] == {"GET /book-seva": True}
    assert snapshots[-1] == {"GET /book-seva": False}
    # set once at the start, cleared once at the end
    assert len(snapshots) == 2


@pytest.mark.asyncio
async def test_status_reports_loading_and_dedup(make_client):
    def handler(request):
        return json_response(200, {})

    async with make_client(handler) as client:
        await client.get("/general/constants")
        status = client.get_status()

    assert status["authenticated"] is False
    assert status["loading"] == {"GET /general/constants": False}
    assert status["deduplicator"]["total_requests"] == 1


@pytest.mark.asyncio
async def test_unauthorized_drops_token_even_if_storage_removal_fails(
    make_client, tmp_path, monkeypatch
):
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path == "/auth/me":
            return json_response(401, {"detail": "Token expired"})
        return json_response(200, [])

    store = TokenStore(tmp_path / "token.json")
    store.set(make_token(3600))

    def refuse(self, missing_ok=False):
        raise PermissionError("read-only storage")

    monkeypatch.setattr(Path, "unlink", refuse)

    async with make_client(handler, token_store=store) as client:
        with pytest.raises(AuthenticationError):
            await client.get("/auth/me")
        await client.get("/book-seva")

    assert "Authorization" not in seen[1].headers


def test_jsonable_body_converts_dates():
    assert jsonable_body({"date": date(2024, 1, 31)}) == {"date": "2024-01-31"}
    assert jsonable_body(None) is None
