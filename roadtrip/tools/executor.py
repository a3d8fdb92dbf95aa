"""Async executor for external provider calls.

Every geocoding, places, routing and dataset call goes through here:
- Hard timeout per call
- Cancellation via a caller-owned CancelToken (aborts the in-flight call)
- Metrics and structured logging per attempt

There are no retries; retry policy belongs to the provider client.
"""

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")


class ToolTimeoutError(Exception):
    """Provider call exceeded its timeout."""

    pass


class ToolCancelledError(Exception):
    """Provider call was cancelled by the caller."""

    pass


@dataclass(frozen=True)
class ToolContext:
    """Identifies a provider call for metrics and logs."""

    trace_id: str
    tool_name: str


@dataclass
class CancelToken:
    """Token for cancellation signaling.

    The owner calls cancel(); the executor races in-flight calls against it.
    """

    cancelled: bool = False
    _event: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cancelled:
            self._event.set()

    def cancel(self) -> None:
        """Signal cancellation to every call sharing this token."""
        self.cancelled = True
        self._event.set()

    def throw_if_cancelled(self) -> None:
        """Raise ToolCancelledError if cancelled."""
        if self.cancelled:
            raise ToolCancelledError("run cancelled")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()


class ToolMetrics:
    """Interface for provider call metrics."""

    def record_latency(self, tool: str, outcome: str, latency_ms: float) -> None:
        """Record provider call latency."""
        pass

    def inc_error(self, tool: str, reason: str) -> None:
        """Increment error counter."""
        pass


class ToolLogger:
    """Interface for structured logging."""

    def log_attempt(
        self,
        ctx: ToolContext,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log a provider call attempt."""
        pass


class ToolExecutor:
    """Runs provider coroutines with timeout, cancellation and instrumentation."""

    def __init__(
        self,
        metrics: ToolMetrics | None = None,
        logger: ToolLogger | None = None,
        default_timeout_ms: int = 4000,
    ) -> None:
        """Initialize executor.

        Args:
            metrics: Metrics recorder (optional, defaults to no-op)
            logger: Structured logger (optional, defaults to no-op)
            default_timeout_ms: Timeout used when execute() is not given one
        """
        self._metrics = metrics or ToolMetrics()
        self._logger = logger or ToolLogger()
        self._default_timeout_ms = default_timeout_ms

    async def execute(
        self,
        ctx: ToolContext,
        fn: Callable[[], Awaitable[T]],
        *,
        timeout_ms: int | None = None,
        cancel_token: CancelToken | None = None,
    ) -> T:
        """Execute one provider call.

        Args:
            ctx: Call context (trace id and provider name)
            fn: Zero-argument coroutine factory performing the call
            timeout_ms: Hard timeout (defaults to the executor's default)
            cancel_token: Cancellation token (optional)

        Returns:
            Whatever fn's coroutine returns

        Raises:
            ToolTimeoutError: Call exceeded the hard timeout
            ToolCancelledError: Token was cancelled before or during the call
            Exception: Any error raised by the provider propagates unchanged
        """
        if cancel_token is None:
            cancel_token = CancelToken()
        cancel_token.throw_if_cancelled()

        timeout_sec = (timeout_ms or self._default_timeout_ms) / 1000
        start = time.monotonic()

        call = asyncio.ensure_future(asyncio.wait_for(fn(), timeout=timeout_sec))
        cancelled = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({call, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for pending in (call, cancelled):
                if not pending.done():
                    pending.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await pending

        elapsed_ms = (time.monotonic() - start) * 1000

        if call.cancelled():
            self._metrics.record_latency(ctx.tool_name, "cancelled", elapsed_ms)
            self._logger.log_attempt(ctx, "cancelled", elapsed_ms, error_reason="cancelled")
            raise ToolCancelledError("run cancelled")

        try:
            result = call.result()
        except TimeoutError as e:
            self._metrics.inc_error(ctx.tool_name, "timeout")
            self._metrics.record_latency(ctx.tool_name, "timeout", elapsed_ms)
            self._logger.log_attempt(ctx, "timeout", elapsed_ms, error_reason="timeout")
            raise ToolTimeoutError(
                f"{ctx.tool_name} timed out after {timeout_sec:.1f}s"
            ) from e
        except Exception as e:
            self._metrics.inc_error(ctx.tool_name, "execution_error")
            self._metrics.record_latency(ctx.tool_name, "error", elapsed_ms)
            self._logger.log_attempt(ctx, "error", elapsed_ms, error_reason=type(e).__name__)
            raise

        self._metrics.record_latency(ctx.tool_name, "success", elapsed_ms)
        self._logger.log_attempt(ctx, "success", elapsed_ms)
        return result
