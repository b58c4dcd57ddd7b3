"""
Unit tests for job analytics.
"""
import httpx
import pytest

from castcheck.services.analytics import AnalyticsSink, JobAnalytics, calculate_cost


def _job(**overrides) -> JobAnalytics:
    data = dict(
        request_id="req-1",
        file_name="report.pdf",
        file_size_bytes=2 * 1024 * 1024,
        model="gemini-2.5-flash",
        provider="openai",
        input_tokens=100_000,
        output_tokens=20_000,
        discrepancies_found=3,
    )
    data.update(overrides)
    return JobAnalytics.priced(**data)


class TestCalculateCost:

    def test_known_model(self):
        cost = calculate_cost("gemini-2.5-flash", 1_000_000, 1_000_000)
        assert cost == {"input_cost": 0.3, "output_cost": 2.5, "total_cost": 2.8}

    def test_unknown_model_uses_default_row(self):
        assert calculate_cost("mystery", 1_000_000, 0)["input_cost"] == 0.3

    def test_rounded_to_four_places(self):
        cost = calculate_cost("gemini-2.5-flash", 123, 0)
        assert cost["input_cost"] == 0.0000  # 0.0000369
        cost = calculate_cost("gemini-2.5-flash", 1234, 0)
        assert cost["input_cost"] == 0.0004  # 0.0003702


class TestJobAnalytics:

    def test_priced_fills_costs(self):
        job = _job()
        assert job.input_cost_usd == 0.03
        assert job.output_cost_usd == 0.05
        assert job.total_cost_usd == 0.08

    def test_to_dict_includes_derived_fields(self):
        data = _job().to_dict()
        assert data["total_tokens"] == 120_000
        assert data["file_size_mb"] == 2.0
        assert data["status"] == "success"


class TestAnalyticsSink:
    """Tests for AnalyticsSink delivery."""

    @pytest.mark.asyncio
    async def test_without_webhook(self):
        result = await AnalyticsSink(webhook_url="").record(_job())
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_delivers_to_webhook(self):
        received = {}

        def handler(request: httpx.Request) -> httpx.Response:
            received["body"] = request.read()
            return httpx.Response(201)

        sink = AnalyticsSink(
            webhook_url="https://analytics.example.com/jobs",
            transport=httpx.MockTransport(handler),
        )
        result = await sink.record(_job())

        assert result == {"success": True}
        assert b'"request_id":"req-1"' in received["body"].replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_http_error_is_reported_not_raised(self):
        sink = AnalyticsSink(
            webhook_url="https://analytics.example.com/jobs",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        result = await sink.record(_job())
        assert result == {"success": False, "error": "HTTP 503"}

    @pytest.mark.asyncio
    async def test_connection_error_is_reported_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        sink = AnalyticsSink(
            webhook_url="https://analytics.example.com/jobs",
            transport=httpx.MockTransport(handler),
        )
        result = await sink.record(_job())
        assert result["success"] is False
        assert "refused" in result["error"]
