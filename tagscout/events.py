"""Strategy attempt events.

Every token or search attempt emits a ``StrategyEvent``. Events go to the
structlog logger and to any callbacks a caller registers, so tests and
operators can observe the cascade without parsing log text.
"""

from typing import Callable, Iterable, Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger()

Stage = Literal["token", "search", "fallback", "timeline"]
Outcome = Literal["success", "dead_end", "failure", "skipped"]


class StrategyEvent(BaseModel):
    """Outcome of one strategy attempt."""

    model_config = ConfigDict(frozen=True)

    platform: str
    stage: Stage
    strategy: str
    outcome: Outcome
    status_code: Optional[int] = None
    detail: Optional[str] = None
    count: Optional[int] = None  # normalized posts, for search stages


EventSink = Callable[[StrategyEvent], None]


def log_event(event: StrategyEvent) -> None:
    """Default sink: write the event to the structured log."""
    fields = event.model_dump(exclude_none=True)
    if event.outcome == "failure":
        logger.warning("strategy_attempt", **fields)
    elif event.outcome == "success":
        logger.info("strategy_attempt", **fields)
    else:
        logger.debug("strategy_attempt", **fields)


class EventEmitter:
    """Fan an event out to the log and to registered callbacks."""

    def __init__(self, platform: str, sinks: Optional[Iterable[EventSink]] = None):
        self.platform = platform
        self._sinks: list[EventSink] = [log_event, *(sinks or [])]

    def emit(
        self,
        stage: Stage,
        strategy: str,
        outcome: Outcome,
        *,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        count: Optional[int] = None,
    ) -> StrategyEvent:
        event = StrategyEvent(
            platform=self.platform,
            stage=stage,
            strategy=strategy,
            outcome=outcome,
            status_code=status_code,
            detail=detail,
            count=count,
        )
        for sink in self._sinks:
            try:
                sink(event)
            except Exception as exc:  # noqa: BLE001
                logger.warning("event_sink_failed", sink=repr(sink), error=str(exc))
        return event


def as_sinks(on_event: "EventSink | Iterable[EventSink] | None") -> list[EventSink]:
    """Accept a single callback, several callbacks, or none."""
    if on_event is None:
        return []
    if callable(on_event):
        return [on_event]
    return list(on_event)
