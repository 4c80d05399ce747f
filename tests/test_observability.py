"""Tests for observability module."""

from httpx import AsyncClient

from context_rag.observability.metrics import (
    get_metrics,
    track_chat_request,
    track_embedding_request,
    track_llm_request,
    track_retrieval_request,
    track_vectorstore_operation,
)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    async def test_metrics_endpoint_returns_prometheus_format(
        self, client: AsyncClient
    ) -> None:
        """Metrics endpoint returns Prometheus format."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        metrics = get_metrics()
        assert isinstance(metrics, bytes)

    def test_track_chat_request(self) -> None:
        """track_chat_request records the context outcome."""
        track_chat_request(context="degraded", duration=0.4)

        metrics = get_metrics().decode()
        assert "chat_request_duration_seconds" in metrics
        assert 'chat_requests_total{context="degraded"}' in metrics

    def test_track_llm_request_success(self) -> None:
        """track_llm_request records successful request."""
        track_llm_request(
            model="test-model",
            duration=1.5,
            prompt_tokens=100,
            completion_tokens=50,
            success=True,
        )

        metrics = get_metrics().decode()
        assert "llm_request_duration_seconds" in metrics
        assert "llm_tokens_total" in metrics

    def test_track_llm_request_failure(self) -> None:
        """track_llm_request records failed request."""
        track_llm_request(
            model="test-model",
            duration=0.5,
            prompt_tokens=0,
            completion_tokens=0,
            success=False,
        )

        metrics = get_metrics().decode()
        assert "llm_requests_total" in metrics

    def test_track_embedding_request(self) -> None:
        """track_embedding_request records request."""
        track_embedding_request(
            model="text-embedding-3-small",
            duration=0.1,
            batch_size=10,
            success=True,
        )

        metrics = get_metrics().decode()
        assert "embedding_request_duration_seconds" in metrics
        assert "embedding_batch_size" in metrics

    def test_track_retrieval_request(self) -> None:
        """track_retrieval_request records candidates, passages and sources."""
        track_retrieval_request(
            candidates=50,
            chunks_returned=5,
            sources_returned=3,
            top_score=0.95,
        )

        metrics = get_metrics().decode()
        assert "retrieval_candidates" in metrics
        assert "retrieval_chunks_returned" in metrics
        assert "retrieval_sources_returned" in metrics
        assert "retrieval_top_score" in metrics

    def test_track_vectorstore_operation(self) -> None:
        """track_vectorstore_operation labels backend, operation and status."""
        track_vectorstore_operation(
            backend="qdrant",
            operation="search",
            duration=0.02,
            success=False,
        )

        metrics = get_metrics().decode()
        assert "vectorstore_operation_duration_seconds" in metrics
        assert 'backend="qdrant"' in metrics
        assert 'status="error"' in metrics


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    async def test_middleware_records_request_metrics(self, client: AsyncClient) -> None:
        """Middleware records HTTP request metrics."""
        await client.get("/health")

        metrics = get_metrics().decode()
        assert "http_request_duration_seconds" in metrics
        assert "http_requests_total" in metrics

    async def test_middleware_normalizes_endpoints(self, client: AsyncClient) -> None:
        """Health sub-paths are grouped under one endpoint label."""
        await client.get("/health/ready")
        await client.get("/health/live")

        metrics = get_metrics().decode()
        assert 'endpoint="/health/ready"' not in metrics
        assert 'endpoint="/health"' in metrics
