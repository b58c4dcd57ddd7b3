"""
Job analytics.

Each analysis job produces one JobAnalytics record: document size, model
token usage and cost, timings and the number of discrepancies found. The
record is always logged and, when a webhook URL is configured, POSTed to it.
Delivery is fire-and-forget: failures are logged and reported in the return
value, never raised into the request that produced the job.
"""
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import httpx
import structlog

from castcheck.config import get_settings

logger = structlog.get_logger(__name__)

# USD per 1M tokens
MODEL_PRICING: Dict[str, Dict[str, float]] = {
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "none": {"input": 0.0, "output": 0.0},
    "default": {"input": 0.30, "output": 2.50},
}

_COST_PLACES = Decimal("0.0001")


def _round_cost(value: Decimal) -> float:
    return float(value.quantize(_COST_PLACES, rounding=ROUND_HALF_UP))


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> Dict[str, float]:
    """
    Cost of one model call in USD, each figure rounded to 4 dp.

    Unknown models are priced with the default row.
    """
    pricing = MODEL_PRICING.get(model, MODEL_PRICING["default"])
    million = Decimal(1_000_000)

    input_cost = Decimal(input_tokens) / million * Decimal(str(pricing["input"]))
    output_cost = Decimal(output_tokens) / million * Decimal(str(pricing["output"]))

    return {
        "input_cost": _round_cost(input_cost),
        "output_cost": _round_cost(output_cost),
        "total_cost": _round_cost(input_cost + output_cost),
    }


@dataclass
class JobAnalytics:
    """One analysis job as recorded for usage and cost tracking."""
    request_id: str
    file_name: str
    file_size_bytes: int
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    input_cost_usd: float = 0.0
    output_cost_usd: float = 0.0
    total_cost_usd: float = 0.0
    extraction_duration_ms: float = 0.0
    total_duration_ms: float = 0.0
    total_checks: int = 0
    discrepancies_found: int = 0
    status: str = "success"
    error_message: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def file_size_mb(self) -> float:
        return round(self.file_size_bytes / (1024 * 1024), 2)

    @classmethod
    def priced(cls, **kwargs: Any) -> "JobAnalytics":
        """Build a record with cost fields filled from the token counts."""
        job = cls(**kwargs)
        cost = calculate_cost(job.model, job.input_tokens, job.output_tokens)
        job.input_cost_usd = cost["input_cost"]
        job.output_cost_usd = cost["output_cost"]
        job.total_cost_usd = cost["total_cost"]
        return job

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_tokens"] = self.total_tokens
        data["file_size_mb"] = self.file_size_mb
        return data


class AnalyticsSink:
    """Delivers JobAnalytics records to the log and an optional webhook."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.webhook_url = webhook_url if webhook_url is not None else settings.analytics_webhook_url
        self.timeout = timeout if timeout is not None else settings.analytics_timeout_seconds
        self._transport = transport

    async def record(self, job: JobAnalytics) -> Dict[str, Any]:
        """
        Record a job.

        Returns:
            ``{"success": True}`` on delivery, otherwise ``{"success": False,
            "error": ...}``.
        """
        payload = job.to_dict()
        logger.info("job_analytics", **payload)

        if not self.webhook_url:
            return {"success": False, "error": "Analytics webhook not configured"}

        start_time = time.time()
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"User-Agent": "CastCheck-Analytics/1.0"},
                    timeout=self.timeout,
                )
        except httpx.TimeoutException:
            logger.warning("analytics_timeout", request_id=job.request_id)
            return {"success": False, "error": "Request timeout"}
        except httpx.RequestError as e:
            logger.error("analytics_request_error", request_id=job.request_id, error=str(e))
            return {"success": False, "error": str(e)}

        response_time_ms = int((time.time() - start_time) * 1000)
        if 200 <= response.status_code < 300:
            logger.info(
                "analytics_delivered",
                request_id=job.request_id,
                status_code=response.status_code,
                response_time_ms=response_time_ms,
            )
            return {"success": True}

        logger.warning(
            "analytics_delivery_failed",
            request_id=job.request_id,
            status_code=response.status_code,
        )
        return {"success": False, "error": f"HTTP {response.status_code}"}


_sink: Optional[AnalyticsSink] = None


def get_analytics_sink() -> AnalyticsSink:
    """Get singleton analytics sink."""
    global _sink
    if _sink is None:
        _sink = AnalyticsSink()
    return _sink
