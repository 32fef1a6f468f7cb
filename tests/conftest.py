import logging

import pytest

from dashboard_client.auth_token.notifier import SessionNotifier
from dashboard_client.auth_token.store import TokenStore
from dashboard_client.client.api_client import ApiClient
from dashboard_client.config import ClientSettings
from dashboard_client.logging_config import error_aggregator
from tests.fixtures.http_fixtures import BASE_URL, FakeSession
from tests.fixtures.token_fixtures import FIFTEEN_MINUTES, FakeClock


class EventRecorder:
    """Subscribes to every notifier event and records them in order."""

    def __init__(self, notifier: SessionNotifier):
        self.events: list[tuple[str, object]] = []
        notifier.on_session_expired(lambda reason: self.events.append(("session_expired", reason)))
        notifier.on_token_removed(lambda: self.events.append(("token_removed", None)))
        notifier.on_token_updated(lambda token: self.events.append(("token_updated", token)))

    def of(self, kind: str) -> list[object]:
        return [payload for name, payload in self.events if name == kind]


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    """Keep structured-error counts from leaking between tests."""
    yield
    error_aggregator.reset()


@pytest.fixture(autouse=True)
def _quiet_logs(caplog):
    caplog.set_level(logging.DEBUG)
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(
        base_url=BASE_URL,
        renewal_threshold_seconds=FIFTEEN_MINUTES,
        token_store_file=None,
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def store() -> TokenStore:
    return TokenStore()


@pytest.fixture
def notifier() -> SessionNotifier:
    return SessionNotifier()


@pytest.fixture
def recorder(notifier) -> EventRecorder:
    return EventRecorder(notifier)


@pytest.fixture
def client(fake_session, settings, store, notifier, clock) -> ApiClient:
    return ApiClient(fake_session, settings, store=store, notifier=notifier, clock=clock)
