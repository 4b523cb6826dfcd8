import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cvmatch.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
    RequestLoggingMiddleware,
)
from cvmatch.utils.exceptions import AnalysisServiceUnavailable, NoCandidates


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ExceptionHandlerMiddleware)

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    @app.get("/no-candidates")
    async def no_candidates():
        raise NoCandidates()

    @app.get("/timeout")
    async def timeout():
        raise AnalysisServiceUnavailable("timed out", reason="timeout")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("unexpected")

    return TestClient(app)


class TestExceptionHandlerMiddleware:
    """Test cases for error envelopes and request ids"""

    def test_success_has_headers(self, client):
        response = client.get("/ok")
        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
        assert float(response.headers["X-Processing-Time"]) >= 0

    def test_matcher_error_envelope(self, client):
        response = client.get("/no-candidates")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["status_code"] == 400
        assert body["error"]["error_code"] == "NO_CANDIDATES"
        assert body["request_id"] == response.headers["X-Request-ID"]

    def test_timeout_maps_to_gateway_timeout(self, client):
        assert client.get("/timeout").status_code == 504

    def test_unhandled_error(self, client):
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"
        assert "unexpected" not in response.text
