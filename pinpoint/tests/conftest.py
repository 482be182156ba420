"""Shared fixtures for pinpoint tests."""

import io

import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons between tests."""
    yield

    # 1. Settings LRU cache
    from pinpoint.config import get_settings

    get_settings.cache_clear()

    # 2. HTTP client singleton
    import pinpoint.services.http_client as http_mod

    http_mod._client = None

    # 3. Router state: rate limiter, outcome store, sender
    import pinpoint.routers.feedback as fb_mod

    fb_mod._rate_limits.clear()
    fb_mod._store = None
    fb_mod._delegate = None
    fb_mod._sender = None


@pytest.fixture
def mock_settings(monkeypatch):
    """Provide a Settings object with safe test defaults."""
    from pinpoint.config import Settings, get_settings

    test_settings = Settings(
        trello_api_key="test-key",
        trello_api_token="test-token",
        trello_list_id="test-list",
        trello_legacy_closing_boundary=False,
        trello_check_status=False,
        http_timeout=5.0,
        outcome_ttl_seconds=3600,
        outcome_max_entries=100,
        max_screenshot_bytes=1024 * 1024,
    )

    get_settings.cache_clear()
    monkeypatch.setattr("pinpoint.config.get_settings", lambda: test_settings)

    # Patch get_settings in every module that imports it directly
    # (from pinpoint.config import get_settings creates a local binding that
    # the pinpoint.config monkeypatch above does not affect)
    for mod_path in [
        "pinpoint.services.http_client",
        "pinpoint.services.trello_sender",
        "pinpoint.routers.feedback",
        "pinpoint.main",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


def _make_png(color=(255, 0, 0), size=(10, 10), mode="RGB") -> bytes:
    """Encode a solid-colour image as PNG."""
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def red_png() -> bytes:
    """A 10x10 solid red PNG."""
    return _make_png()


class _RecordingDelegate:
    """Test delegate that keeps every notification it receives."""

    def __init__(self):
        self.sent = []
        self.failed = []

    def sender_did_send(self, sender, feedback, success):
        self.sent.append((feedback, success))

    def sender_did_fail_to_send(self, sender, feedback, error):
        self.failed.append((feedback, error))

    @property
    def notifications(self) -> int:
        return len(self.sent) + len(self.failed)


class _FakePresenter:
    def __init__(self):
        self.dismiss_count = 0

    def dismiss(self):
        self.dismiss_count += 1


@pytest.fixture
def make_png():
    return _make_png


@pytest.fixture
def delegate():
    return _RecordingDelegate()


@pytest.fixture
def presenter():
    return _FakePresenter()
