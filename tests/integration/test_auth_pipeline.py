"""
End-to-end tests of the authenticated request pipeline.

Every scenario drives ApiClient against a scripted FakeSession, so refresh
coordination, retries and session notifications are exercised together.
"""

import asyncio

import pytest

from dashboard_client.auth_token.coordinator import NO_TOKEN_REASON, SESSION_EXPIRED_REASON
from dashboard_client.client.interceptors import INVALID_TOKEN_REASON
from dashboard_client.client.models import PendingRequest
from dashboard_client.errors.internal import DecodeError, NetworkError, RefreshFailure
from tests.fixtures.http_fixtures import FakeResp, wait_until
from tests.fixtures.token_fixtures import (
    EXPIRING_TOKEN,
    FRESH_TOKEN,
    MALFORMED_TOKEN,
    MOCK_RENEWAL_RESPONSE,
    MOCK_UNAUTHORIZED,
    RENEWED_TOKEN,
    RENEWED_TOKEN_2,
)

REFRESH = "/auth/refresh-token"


def _bearer_check(expected_token, ok_payload):
    """Reply 200 only when the expected token is presented, 401 otherwise."""

    def reply(call):
        if call.bearer == expected_token:
            return FakeResp(200, ok_payload)
        return FakeResp(401, MOCK_UNAUTHORIZED)

    return reply


@pytest.mark.asyncio
async def test_fresh_token_single_call(client, store, fake_session, recorder):
    store.set(FRESH_TOKEN)
    fake_session.route("GET", "/products", FakeResp(200, [{"id": 1}]))

    resp = await client.request("GET", "/products")

    assert resp.status == 200
    assert len(fake_session.calls) == 1
    assert fake_session.calls[0].bearer == FRESH_TOKEN
    assert recorder.events == []


@pytest.mark.asyncio
async def test_expiring_token_refreshed_before_send(client, store, fake_session, recorder):
    store.set(EXPIRING_TOKEN)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    fake_session.route("GET", "/products", FakeResp(200, []))

    resp = await client.request("GET", "/products")

    assert resp.status == 200
    assert [c.url.rsplit("/", 1)[-1] for c in fake_session.calls] == ["refresh-token", "products"]
    assert fake_session.calls[0].bearer == EXPIRING_TOKEN
    assert fake_session.calls[1].bearer == RENEWED_TOKEN
    assert store.get() == RENEWED_TOKEN
    assert recorder.events == [("token_updated", RENEWED_TOKEN)]


@pytest.mark.asyncio
async def test_concurrent_expiring_requests_share_one_refresh(client, store, fake_session):
    store.set(EXPIRING_TOKEN)
    gate = fake_session.gate("POST", REFRESH)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    fake_session.route("GET", "/products", FakeResp(200, []))

    tasks = [asyncio.create_task(client.request("GET", "/products")) for _ in range(10)]
    await wait_until(lambda: client.coordinator.waiter_count == 9)
    gate.set()
    responses = await asyncio.gather(*tasks)

    assert all(r.status == 200 for r in responses)
    assert len(fake_session.calls_to("POST", REFRESH)) == 1
    product_calls = fake_session.calls_to("GET", "/products")
    assert len(product_calls) == 10
    assert {c.bearer for c in product_calls} == {RENEWED_TOKEN}


@pytest.mark.asyncio
async def test_unauthorized_is_refreshed_and_replayed(client, store, fake_session, recorder):
    store.set(FRESH_TOKEN)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    fake_session.route("GET", "/orders", _bearer_check(RENEWED_TOKEN, [{"id": 5}]))

    resp = await client.request("GET", "/orders")

    assert resp.status == 200
    assert resp.json() == [{"id": 5}]
    assert [c.bearer for c in fake_session.calls_to("GET", "/orders")] == [FRESH_TOKEN, RENEWED_TOKEN]
    assert recorder.of("session_expired") == []


@pytest.mark.asyncio
async def test_replay_happens_at_most_once(client, store, fake_session, recorder):
    store.set(FRESH_TOKEN)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    fake_session.route("GET", "/orders", FakeResp(401, MOCK_UNAUTHORIZED))

    resp = await client.request("GET", "/orders")

    assert resp.status == 401
    assert len(fake_session.calls_to("GET", "/orders")) == 2
    assert len(fake_session.calls_to("POST", REFRESH)) == 1
    assert store.get() is None
    assert recorder.of("session_expired") == [SESSION_EXPIRED_REASON]


@pytest.mark.asyncio
async def test_concurrent_unauthorized_share_one_refresh(client, store, fake_session):
    store.set(FRESH_TOKEN)
    gate = fake_session.gate("POST", REFRESH)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    for path in ("/a", "/b", "/c"):
        fake_session.route("GET", path, _bearer_check(RENEWED_TOKEN, {"path": path}))

    tasks = [asyncio.create_task(client.request("GET", p)) for p in ("/a", "/b", "/c")]
    await wait_until(lambda: client.coordinator.waiter_count == 2)
    gate.set()
    responses = await asyncio.gather(*tasks)

    assert [r.json() for r in responses] == [{"path": "/a"}, {"path": "/b"}, {"path": "/c"}]
    assert len(fake_session.calls_to("POST", REFRESH)) == 1


@pytest.mark.asyncio
async def test_late_unauthorized_reuses_already_renewed_token(client, store, fake_session):
    store.set(FRESH_TOKEN)
    slow_gate = fake_session.gate("GET", "/slow")
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE), FakeResp(200, {"access_token": RENEWED_TOKEN_2}))
    fake_session.route("GET", "/fast", _bearer_check(RENEWED_TOKEN, "fast"))
    fake_session.route("GET", "/slow", _bearer_check(RENEWED_TOKEN, "slow"))

    slow = asyncio.create_task(client.request("GET", "/slow"))
    await wait_until(lambda: len(fake_session.calls_to("GET", "/slow")) == 1)
    # /fast hits 401 and renews while /slow is still in flight with the old token
    fast = await client.request("GET", "/fast")
    slow_gate.set()
    slow_resp = await slow

    assert fast.json() == "fast"
    assert slow_resp.json() == "slow"
    assert len(fake_session.calls_to("POST", REFRESH)) == 1
    assert store.get() == RENEWED_TOKEN


@pytest.mark.asyncio
async def test_refresh_failure_logs_out_and_next_send_is_anonymous(client, store, fake_session, recorder):
    store.set(EXPIRING_TOKEN)
    fake_session.route("POST", REFRESH, FakeResp(401, MOCK_UNAUTHORIZED))
    fake_session.route("GET", "/products", FakeResp(200, []))

    with pytest.raises(RefreshFailure):
        await client.request("GET", "/products")

    assert store.get() is None
    assert fake_session.calls_to("GET", "/products") == []
    assert recorder.events == [
        ("token_removed", None),
        ("session_expired", SESSION_EXPIRED_REASON),
    ]

    resp = await client.request("GET", "/products")
    assert resp.status == 200
    assert fake_session.calls_to("GET", "/products")[0].bearer is None


@pytest.mark.asyncio
async def test_refresh_failure_fans_out_to_all_waiters(client, store, fake_session, recorder):
    store.set(EXPIRING_TOKEN)
    gate = fake_session.gate("POST", REFRESH)
    fake_session.route("POST", REFRESH, FakeResp(401, MOCK_UNAUTHORIZED))

    tasks = [asyncio.create_task(client.request("GET", "/products")) for _ in range(4)]
    await wait_until(lambda: client.coordinator.waiter_count == 3)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(isinstance(r, RefreshFailure) for r in results)
    assert len(fake_session.calls_to("POST", REFRESH)) == 1
    assert recorder.of("session_expired") == [SESSION_EXPIRED_REASON]


@pytest.mark.asyncio
async def test_refresh_endpoint_401_does_not_recurse(client, store, fake_session, recorder):
    store.set(FRESH_TOKEN)
    fake_session.route("POST", REFRESH, FakeResp(401, MOCK_UNAUTHORIZED))

    resp = await client.request("POST", REFRESH)

    assert resp.status == 401
    assert len(fake_session.calls) == 1
    assert store.get() is None
    assert recorder.of("session_expired") == [SESSION_EXPIRED_REASON]


@pytest.mark.asyncio
async def test_malformed_token_is_rejected_before_send(client, store, fake_session, recorder):
    store.set(MALFORMED_TOKEN)

    with pytest.raises(DecodeError):
        await client.request("GET", "/products")

    assert fake_session.calls == []
    assert store.get() is None
    assert recorder.of("session_expired") == [INVALID_TOKEN_REASON]


@pytest.mark.asyncio
async def test_no_token_request_is_sent_without_credential(client, fake_session, recorder):
    fake_session.route("POST", "/auth/login", FakeResp(200, {"access_token": FRESH_TOKEN}))

    resp = await client.request("POST", "/auth/login", data={"username": "a", "password": "b"})

    assert resp.status == 200
    assert fake_session.calls[0].bearer is None
    assert recorder.events == []


@pytest.mark.asyncio
async def test_unauthorized_without_token_notifies_once(client, fake_session, recorder):
    fake_session.route("GET", "/me", FakeResp(401, MOCK_UNAUTHORIZED))

    resp = await client.request("GET", "/me")

    assert resp.status == 401
    assert fake_session.calls_to("POST", REFRESH) == []
    assert recorder.of("session_expired") == [SESSION_EXPIRED_REASON]


@pytest.mark.asyncio
async def test_network_error_during_replay_propagates(client, store, fake_session):
    store.set(FRESH_TOKEN)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    fake_session.route("GET", "/orders", FakeResp(401, MOCK_UNAUTHORIZED), ConnectionResetError("reset"))

    with pytest.raises(NetworkError):
        await client.request("GET", "/orders")

    assert store.get() == RENEWED_TOKEN


@pytest.mark.asyncio
async def test_login_and_logout_events(client, fake_session, recorder):
    await client.login(FRESH_TOKEN)
    assert client.token == FRESH_TOKEN

    await client.logout()
    assert client.token is None

    assert recorder.events == [("token_updated", FRESH_TOKEN), ("token_removed", None)]
    assert NO_TOKEN_REASON not in recorder.of("session_expired")


@pytest.mark.asyncio
async def test_send_accepts_prebuilt_request(client, store, fake_session):
    store.set(FRESH_TOKEN)
    fake_session.route("PUT", "/products/1", FakeResp(200, {"id": 1}))

    resp = await client.send(PendingRequest("put", "/products/1", json={"name": "Lamp"}))

    assert resp.json() == {"id": 1}
    assert fake_session.calls[0].json == {"name": "Lamp"}


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_fail_other_requests(client, store, fake_session, recorder):
    store.set(EXPIRING_TOKEN)
    gate = fake_session.gate("POST", REFRESH)
    fake_session.route("POST", REFRESH, FakeResp(200, MOCK_RENEWAL_RESPONSE))
    fake_session.route("GET", "/products", FakeResp(200, []))

    tasks = [asyncio.create_task(client.request("GET", "/products")) for _ in range(3)]
    await wait_until(lambda: client.coordinator.waiter_count == 2)
    tasks[0].cancel()
    with pytest.raises(asyncio.CancelledError):
        await tasks[0]
    gate.set()
    others = await asyncio.gather(*tasks[1:])

    assert [r.status for r in others] == [200, 200]
    assert len(fake_session.calls_to("POST", REFRESH)) == 1
    assert {c.bearer for c in fake_session.calls_to("GET", "/products")} == {RENEWED_TOKEN}
    assert store.get() == RENEWED_TOKEN
    assert recorder.events == [("token_updated", RENEWED_TOKEN)]


@pytest.mark.asyncio
async def test_caller_authorization_header_never_duplicated(client, store, fake_session):
    fake_session.route("GET", "/products", FakeResp(200, []))

    await client.request("GET", "/products", headers={"authorization": "Bearer stale"})
    store.set(FRESH_TOKEN)
    await client.request("GET", "/products", headers={"authorization": "Bearer stale"})

    anonymous, authenticated = fake_session.calls
    assert anonymous.headers.getall("Authorization", []) == []
    assert authenticated.headers.getall("Authorization") == [f"Bearer {FRESH_TOKEN}"]
