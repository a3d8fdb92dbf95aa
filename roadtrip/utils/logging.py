"""Structured logging for provider calls."""

import logging
from typing import Any

from roadtrip.tools.executor import ToolContext

logger = logging.getLogger(__name__)


class StructuredToolLogger:
    """Structured logger for provider calls."""

    def log_attempt(
        self,
        ctx: ToolContext,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log provider call attempt with structured data."""
        log_data: dict[str, Any] = {
            "trace_id": ctx.trace_id,
            "provider": ctx.tool_name,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Provider call: {ctx.tool_name} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
