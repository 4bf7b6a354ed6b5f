"""Tests for API routes using httpx AsyncClient."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from homework_review.constants import MAX_COMPARE_CHARS
from homework_review.main import app
from homework_review.resilience.errors import DomainError, ErrorKind
from tests.conftest import FakeReviewService, setup_test_app

_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32

_COMPLETION = json.dumps(
    [
        {
            "id": "1",
            "result": True,
            "question": "2 + 2 = ?",
            "answer": "4",
            "correctAnswer": "4",
        },
        {
            "id": 2,
            "result": False,
            "question": "Capital of France?",
            "answer": "Lyon",
            "correctAnswer": "Paris",
        },
    ]
)


@asynccontextmanager
async def _client(**kwargs: object) -> AsyncIterator[
    tuple[AsyncClient, FakeReviewService]
]:
    service = setup_test_app(**kwargs)  # type: ignore[arg-type]
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(
        transport=transport, base_url="http://test"
    ) as c:
        yield c, service


def _image(
    data: bytes = _PNG, mime: str = "image/png"
) -> dict[str, tuple[str, bytes, str]]:
    return {"image": ("sheet.png", data, mime)}


class TestHealthRoutes:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_metrics_empty(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health/metrics")
        assert resp.status_code == 200
        assert resp.json() == {"metrics": {}}


class TestReviewRoute:
    @pytest.mark.asyncio
    async def test_returns_raw_completion(self) -> None:
        async with _client(completion="```json\n[]\n```") as (c, service):
            resp = await c.post("/api/review", files=_image())
        assert resp.status_code == 200
        assert resp.json() == "```json\n[]\n```"
        assert service.calls == [(len(_PNG), "image/png")]

    @pytest.mark.asyncio
    async def test_missing_image_is_400(self) -> None:
        async with _client() as (c, service):
            resp = await c.post("/api/review")
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "InvalidParameters"
        assert data["path"] == "[POST]/api/review"
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_non_image_is_400(self) -> None:
        async with _client() as (c, _):
            resp = await c.post(
                "/api/review", files=_image(b"hello", "text/plain")
            )
        assert resp.status_code == 400
        assert "text/plain" in resp.json()["message"]

    @pytest.mark.asyncio
    async def test_empty_image_is_400(self) -> None:
        async with _client() as (c, _):
            resp = await c.post("/api/review", files=_image(b""))
        assert resp.status_code == 400
        assert resp.json()["message"] == "The uploaded image is empty"

    @pytest.mark.asyncio
    async def test_oversized_image_is_400(self) -> None:
        async with _client(max_upload_bytes=10) as (c, _):
            resp = await c.post("/api/review", files=_image())
        assert resp.status_code == 400
        assert "exceeds 10 bytes" in resp.json()["message"]

    @pytest.mark.asyncio
    async def test_service_failure_is_reported(self) -> None:
        error = DomainError(
            ErrorKind.VISION_MODEL,
            "Vision model call failed: upstream 500",
            cause=RuntimeError("upstream 500"),
        )
        async with _client(error=error) as (c, _):
            resp = await c.post("/api/review", files=_image())
        assert resp.status_code == 502
        data = resp.json()
        assert data["error"] == "VisionModelFailure"
        assert data["traceId"]


class TestStructuredReviewRoute:
    @pytest.mark.asyncio
    async def test_scores_questions(self) -> None:
        fenced = f"# Result\n```json\n{_COMPLETION}\n```"
        async with _client(completion=fenced) as (c, _):
            resp = await c.post("/api/review/structured", files=_image())
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert data["correct"] == 1
        first, second = data["questions"]
        assert first["correctAnswer"] == "4"
        assert first["similarity"] == 1.0
        assert first["match"] is True
        assert second["id"] == "2"
        assert second["match"] is False
        assert 0.0 <= second["similarity"] < 1.0

    @pytest.mark.asyncio
    async def test_records_extract_metric(self) -> None:
        async with _client(completion=_COMPLETION) as (c, _):
            await c.post("/api/review/structured", files=_image())
            resp = await c.get("/api/health/metrics")
        assert resp.json()["metrics"]["review.extract"]["count"] == 1

    @pytest.mark.asyncio
    async def test_single_object_wrapped(self) -> None:
        single = json.dumps(
            {"id": "1", "result": True, "answer": "a", "correctAnswer": "a"}
        )
        async with _client(completion=single) as (c, _):
            resp = await c.post("/api/review/structured", files=_image())
        assert resp.status_code == 200
        assert resp.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_unparseable_output_is_502(self) -> None:
        async with _client(completion="I could not read the image.") as (
            c,
            _,
        ):
            resp = await c.post("/api/review/structured", files=_image())
        assert resp.status_code == 502
        data = resp.json()
        assert data["message"] == "Vision model returned unparseable output"
        assert "could not read" not in resp.text

    @pytest.mark.asyncio
    async def test_wrong_shape_is_502(self) -> None:
        async with _client(completion='[{"question": "no id"}]') as (c, _):
            resp = await c.post("/api/review/structured", files=_image())
        assert resp.status_code == 502
        assert resp.json()["error"] == "VisionModelFailure"

    @pytest.mark.asyncio
    async def test_scalar_json_is_502(self) -> None:
        async with _client(completion="42") as (c, _):
            resp = await c.post("/api/review/structured", files=_image())
        assert resp.status_code == 502
        assert "got int" in resp.json()["message"]


class TestSimilarityRoute:
    @pytest.mark.asyncio
    async def test_identical(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/similarity", json={"text1": "a   b", "text2": "a b"}
        )
        assert resp.status_code == 200
        assert resp.json() == {"similarity": 1.0, "match": True}

    @pytest.mark.asyncio
    async def test_custom_threshold(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/similarity",
            json={"text1": "abcd", "text2": "ab", "threshold": 0.5},
        )
        assert resp.json() == {"similarity": 0.5, "match": True}

    @pytest.mark.asyncio
    async def test_missing_field_is_422(self, client: AsyncClient) -> None:
        resp = await client.post("/api/similarity", json={"text1": "a"})
        assert resp.status_code == 422
        data = resp.json()
        assert data["statusCode"] == 422
        assert data["path"] == "[POST]/api/similarity"

    @pytest.mark.asyncio
    async def test_text_at_cap_accepted(self, client: AsyncClient) -> None:
        text = "a" * MAX_COMPARE_CHARS
        resp = await client.post(
            "/api/similarity", json={"text1": text, "text2": text}
        )
        assert resp.status_code == 200
        assert resp.json()["similarity"] == 1.0

    @pytest.mark.asyncio
    async def test_text_over_cap_rejected(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/similarity",
            json={"text1": "a" * (MAX_COMPARE_CHARS + 1), "text2": "a"},
        )
        assert resp.status_code == 422
        assert "text1" in resp.json()["message"]

    def test_cap_stays_small(self) -> None:
        assert MAX_COMPARE_CHARS <= 1_000


class TestRoutingErrors:
    @pytest.mark.asyncio
    async def test_unknown_route_404(self, client: AsyncClient) -> None:
        resp = await client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert "traceId" not in resp.json()

    @pytest.mark.asyncio
    async def test_get_on_post_route_405(self, client: AsyncClient) -> None:
        resp = await client.get("/api/review")
        assert resp.status_code == 405
        assert "traceId" not in resp.json()
