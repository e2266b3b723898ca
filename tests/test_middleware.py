"""Tests for rate limiting, security headers and the terminal error handler."""

from fastapi.testclient import TestClient

from tasktracker.api.middleware import RATE_LIMIT_MESSAGE, SECURITY_HEADERS, RateLimiter
from tasktracker.app import create_app


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    """Tests for the fixed-window limiter."""

    def test_allows_up_to_limit(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())
        results = [limiter.hit("1.2.3.4") for _ in range(4)]
        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        assert limiter.hit("a").allowed is True
        assert limiter.hit("a").allowed is False

        clock.now += 60
        assert limiter.hit("a").allowed is True

    def test_keys_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
        assert limiter.hit("a").allowed is True
        assert limiter.hit("b").allowed is True
        assert limiter.hit("a").allowed is False

    def test_reset_after(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.hit("a")
        clock.now += 15
        assert limiter.hit("a").reset_after == 45

    def test_sweep_drops_expired_windows(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=10, clock=clock)
        limiter.SWEEP_THRESHOLD = 2
        limiter.hit("a")
        limiter.hit("b")
        clock.now += 10
        limiter.hit("c")
        assert set(limiter._windows) == {"c"}


def test_rate_limit_middleware(settings, database):
    """Requests past the budget get 429; non-API paths are exempt."""
    limited = settings.model_copy(
        update={"rate_limit_enabled": True, "rate_limit_max_requests": 2}
    )
    app = create_app(limited, database)

    with TestClient(app) as client:
        statuses = [client.get("/api/auth/me").status_code for _ in range(3)]
        assert statuses == [401, 401, 429]

        blocked = client.get("/api/tasks")
        assert blocked.status_code == 429
        assert blocked.json() == {"success": False, "message": RATE_LIMIT_MESSAGE}
        assert int(blocked.headers["Retry-After"]) > 0

        assert client.get("/health").status_code == 200


def test_security_headers(client):
    """Every response carries the hardening headers."""
    response = client.get("/health")
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value


def test_unhandled_error_in_development(settings, database):
    """Unclassified failures are 500s with a stack trace in development."""
    app = create_app(settings.model_copy(update={"environment": "development"}), database)

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Server Error"
    assert "kaboom" in body["stack"]
    assert body["error"] == "RuntimeError('kaboom')"


def test_unhandled_error_outside_development(app):
    """Outside development the stack trace is withheld."""

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server Error"}


def test_unhandled_error_keeps_cors_and_security_headers(app, settings):
    """A browser on the allowed origin can read the 500 envelope."""

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom", headers={"Origin": settings.cors_origin})

    assert response.status_code == 500
    assert response.json()["message"] == "Server Error"
    assert response.headers["access-control-allow-origin"] == settings.cors_origin
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value
