"""Unit tests for ZohoClient.execute.

The accounts server and the resource API are both faked with a single
``httpx.MockTransport`` that routes on host name.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from zoho_projects_mcp.auth.errors import ApiError, ConfigurationError
from zoho_projects_mcp.auth.models import CredentialState, RequestDescriptor
from zoho_projects_mcp.client import ZohoClient
from zoho_projects_mcp.config import ZohoConfig

NOW = 1_700_000_000.0
API = "https://projectsapi.zoho.com"
ACCOUNTS = "https://accounts.zoho.com"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeZoho:
    """Record every request and answer from per-host queues of handlers."""

    def __init__(self) -> None:
        self.api_replies: list[Handler] = []
        self.token_replies: list[Handler] = []
        self.api_requests: list[httpx.Request] = []
        self.token_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "accounts.zoho.com":
            self.token_requests.append(request)
            return self.token_replies.pop(0)(request)
        self.api_requests.append(request)
        return self.api_replies.pop(0)(request)

    def api(self, status: int = 200, **kwargs) -> FakeZoho:
        self.api_replies.append(lambda request: httpx.Response(status, **kwargs))
        return self

    def token(self, status: int = 200, **kwargs) -> FakeZoho:
        self.token_replies.append(lambda request: httpx.Response(status, **kwargs))
        return self


def _granted(token: str = "fresh-token", expires_in: int = 3600) -> dict:
    return {"json": {"access_token": token, "expires_in": expires_in}}


def _state(*, token: str = "tok", expires_at: float = NOW + 3600, refresh: bool = True):
    return CredentialState(
        access_token=token,
        expires_at=expires_at,
        api_domain=API,
        accounts_domain=ACCOUNTS,
        refresh_token="rt" if refresh else "",
        client_id="cid" if refresh else "",
        client_secret="cs" if refresh else "",
    )


def _client(fake: FakeZoho, state: CredentialState, clock: FakeClock | None = None):
    clock = clock or FakeClock(NOW)
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    return ZohoClient(state, http, clock=clock, session_id="test-session")


def _bearer(request: httpx.Request) -> str:
    return request.headers["authorization"]


# --------------------------------------------------------------------------- #
# Happy path                                                                  #
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_fresh_token_single_request():
    fake = FakeZoho().api(json={"portals": [{"id": "1"}]})
    client = _client(fake, _state())

    result = await client.request("/portals")

    assert result == {"portals": [{"id": "1"}]}
    assert fake.token_requests == []
    assert len(fake.api_requests) == 1
    request = fake.api_requests[0]
    assert str(request.url) == f"{API}/api/v3/portals"
    assert _bearer(request) == "Zoho-oauthtoken tok"
    assert request.headers["content-type"] == "application/json"
    assert request.content == b""


@pytest.mark.anyio
async def test_post_sends_json_body():
    fake = FakeZoho().api(status=201, json={"id": "9"})
    client = _client(fake, _state())

    await client.request("/portal/1/projects", "POST", {"name": "Alpha"})

    request = fake.api_requests[0]
    assert request.method == "POST"
    assert json.loads(request.content) == {"name": "Alpha"}


@pytest.mark.anyio
async def test_empty_dict_body_is_still_sent():
    fake = FakeZoho().api(json={})
    client = _client(fake, _state())
    await client.request("/x", "PATCH", {})
    assert fake.api_requests[0].content == b"{}"


@pytest.mark.anyio
async def test_body_ignored_for_get():
    fake = FakeZoho().api(json={})
    client = _client(fake, _state())
    await client.execute(RequestDescriptor("/x", "GET", {"ignored": True}))
    assert fake.api_requests[0].content == b""


@pytest.mark.anyio
async def test_empty_success_body_returns_none():
    fake = FakeZoho().api(status=204)
    client = _client(fake, _state())
    assert await client.request("/portal/1/projects/2/tasks/3", "DELETE") is None


@pytest.mark.anyio
async def test_non_json_success_body_raises():
    fake = FakeZoho().api(text="<html>oops</html>")
    client = _client(fake, _state())
    with pytest.raises(ApiError, match="non-JSON"):
        await client.request("/portals")


# --------------------------------------------------------------------------- #
# Proactive refresh                                                           #
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_stale_token_refreshed_before_request():
    fake = FakeZoho().token(**_granted("T2")).api(json={"ok": True})
    state = _state(token="T1", expires_at=NOW - 1)
    client = _client(fake, state)

    assert await client.request("/portals") == {"ok": True}

    assert len(fake.token_requests) == 1
    assert _bearer(fake.api_requests[0]) == "Zoho-oauthtoken T2"
    assert state.expires_at == NOW + 3300


@pytest.mark.anyio
async def test_expiry_exactly_now_counts_as_stale():
    fake = FakeZoho().token(**_granted("T2")).api(json={})
    client = _client(fake, _state(expires_at=NOW))
    await client.request("/portals")
    assert len(fake.token_requests) == 1


@pytest.mark.anyio
async def test_proactive_refresh_failure_falls_back_to_current_token():
    fake = FakeZoho().token(status=500, text="down").api(json={"ok": True})
    state = _state(token="T1", expires_at=NOW - 1)
    client = _client(fake, state)

    assert await client.request("/portals") == {"ok": True}
    assert _bearer(fake.api_requests[0]) == "Zoho-oauthtoken T1"


@pytest.mark.anyio
async def test_stale_token_without_refresh_credentials_is_used_as_is():
    fake = FakeZoho().api(json={})
    client = _client(fake, _state(token="T1", expires_at=NOW - 1, refresh=False))
    await client.request("/portals")
    assert fake.token_requests == []
    assert _bearer(fake.api_requests[0]) == "Zoho-oauthtoken T1"


@pytest.mark.anyio
async def test_missing_token_without_refresh_fails_before_sending():
    fake = FakeZoho()
    client = _client(fake, _state(token="", expires_at=NOW, refresh=False))

    with pytest.raises(ConfigurationError) as excinfo:
        await client.request("/portals")

    assert excinfo.value.setting == "ZOHO_ACCESS_TOKEN"
    assert "Set ZOHO_ACCESS_TOKEN environment variable" in str(excinfo.value)
    assert fake.api_requests == [] and fake.token_requests == []


@pytest.mark.anyio
async def test_missing_token_with_refresh_credentials_refreshes_first():
    config = ZohoConfig(refresh_token="rt", client_id="cid", client_secret="cs")
    clock = FakeClock(NOW)
    state = config.new_credential_state(clock=clock)
    fake = FakeZoho().token(**_granted("T1")).api(json={"portals": []})
    client = _client(fake, state, clock)

    assert await client.request("/portals") == {"portals": []}
    assert _bearer(fake.api_requests[0]) == "Zoho-oauthtoken T1"


@pytest.mark.anyio
async def test_token_reused_until_clock_passes_expiry():
    clock = FakeClock(NOW)
    fake = FakeZoho().token(**_granted("T2")).api(json={}).api(json={}).api(json={})
    client = _client(fake, _state(token="T1", expires_at=NOW + 10), clock)

    await client.request("/a")
    clock.now = NOW + 9
    await client.request("/b")
    clock.now = NOW + 10
    await client.request("/c")

    assert [_bearer(r)[-2:] for r in fake.api_requests] == ["T1", "T1", "T2"]
    assert len(fake.token_requests) == 1


# --------------------------------------------------------------------------- #
# Reactive refresh on 401                                                     #
# --------------------------------------------------------------------------- #
@pytest.mark.anyio
async def test_401_refreshes_and_retries_once():
    fake = (
        FakeZoho()
        .api(status=401, json={"error": "INVALID_OAUTHTOKEN"})
        .token(**_granted("T2"))
        .api(json={"id": "42"})
    )
    state = _state(token="T1")
    client = _client(fake, state)

    assert await client.request("/portal/1/projects/42") == {"id": "42"}

    assert [_bearer(r) for r in fake.api_requests] == [
        "Zoho-oauthtoken T1",
        "Zoho-oauthtoken T2",
    ]
    assert len(fake.token_requests) == 1


@pytest.mark.anyio
async def test_retry_keeps_method_and_body():
    fake = FakeZoho().api(status=401).token(**_granted()).api(status=201, json={})
    client = _client(fake, _state())

    await client.request("/portal/1/projects/2/tasks", "POST", {"name": "T"})

    first, second = fake.api_requests
    assert first.url == second.url
    assert second.method == "POST"
    assert json.loads(second.content) == {"name": "T"}


@pytest.mark.anyio
async def test_second_401_is_not_retried_again():
    fake = (
        FakeZoho()
        .api(status=401, text="first")
        .token(**_granted("T2"))
        .api(status=401, text="still unauthorized")
    )
    client = _client(fake, _state())

    with pytest.raises(ApiError) as excinfo:
        await client.request("/portals")

    assert excinfo.value.status == 401
    assert excinfo.value.body == "still unauthorized"
    assert str(excinfo.value) == "Zoho API error: 401 - still unauthorized"
    assert len(fake.api_requests) == 2
    assert len(fake.token_requests) == 1


@pytest.mark.anyio
async def test_401_without_refresh_credentials_fails_immediately():
    fake = FakeZoho().api(status=401, text="expired")
    client = _client(fake, _state(refresh=False))

    with pytest.raises(ApiError) as excinfo:
        await client.request("/portals")

    assert excinfo.value.status == 401
    assert len(fake.api_requests) == 1
    assert fake.token_requests == []


@pytest.mark.anyio
async def test_401_with_failed_refresh_reports_original_error():
    fake = FakeZoho().api(status=401, text="expired").token(status=400, text="bad")
    client = _client(fake, _state())

    with pytest.raises(ApiError) as excinfo:
        await client.request("/portals")

    assert excinfo.value.status == 401
    assert excinfo.value.body == "expired"
    assert len(fake.api_requests) == 1


@pytest.mark.anyio
@pytest.mark.parametrize("status", [400, 403, 404, 429, 500])
async def test_other_errors_do_not_refresh(status):
    fake = FakeZoho().api(status=status, text="nope")
    client = _client(fake, _state())

    with pytest.raises(ApiError) as excinfo:
        await client.request("/portals")

    assert excinfo.value.status == status
    assert fake.token_requests == []


@pytest.mark.anyio
async def test_error_body_is_truncated():
    fake = FakeZoho().api(status=500, text="x" * 5000)
    client = _client(fake, _state())
    with pytest.raises(ApiError) as excinfo:
        await client.request("/portals")
    assert len(excinfo.value.body) == 2000


@pytest.mark.anyio
async def test_transport_error_propagates():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    fake = FakeZoho()
    fake.api_replies.append(boom)
    client = _client(fake, _state())

    with pytest.raises(httpx.TransportError):
        await client.request("/portals")
