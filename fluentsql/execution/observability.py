from dataclasses import dataclass, field
import json
import logging
from typing import Any, Callable, Mapping

# ==================================================
# Observability Types
# ==================================================

QueryObserveHook = Callable[["QueryObservation"], None]
EventObserveHook = Callable[["ExecutionEvent"], None]
LabelMap = Mapping[str, str]


@dataclass(frozen=True)
class ObservabilitySettings:
    """
    Opt-in hooks notified by the builder for every statement and session event.
    """

    query_observer: QueryObserveHook | None = None
    event_observer: EventObserveHook | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryObservation:
    """
    One executed statement or stored-procedure call.
    """

    operation: str
    command_kind: str
    sql: str
    param_count: int
    duration_ms: float
    succeeded: bool
    in_transaction: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    error_type: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class ExecutionEvent:
    """
    Builder lifecycle event (query.start/end, connection.open/close, txn.begin/commit/rollback).
    """

    timestamp: str
    event: str
    builder: str
    success: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    operation: str | None = None
    command_kind: str | None = None
    query_id: str | None = None
    transaction_id: str | None = None
    connection_id: str | None = None
    duration_ms: float | None = None
    error_type: str | None = None
    error_message: str | None = None


def execution_event_to_dict(event: ExecutionEvent) -> dict[str, Any]:
    """
    Converts an ExecutionEvent into a JSON-safe dictionary.
    """

    return {
        "timestamp": event.timestamp,
        "event": event.event,
        "builder": event.builder,
        "success": event.success,
        "metadata": dict(event.metadata),
        "operation": event.operation,
        "command_kind": event.command_kind,
        "query_id": event.query_id,
        "transaction_id": event.transaction_id,
        "connection_id": event.connection_id,
        "duration_ms": event.duration_ms,
        "error_type": event.error_type,
        "error_message": event.error_message,
    }


def make_json_event_logger(
    *,
    logger: logging.Logger,
    level: int = logging.INFO,
) -> EventObserveHook:
    """
    Builds an EventObserveHook that emits one JSON log line per ExecutionEvent.
    Failed events are logged at WARNING or above.
    """

    def _log_event(event: ExecutionEvent) -> None:
        payload = execution_event_to_dict(event)
        event_level = level if event.success else max(level, logging.WARNING)
        logger.log(event_level, json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str))

    return _log_event


def compose_event_observers(*observers: EventObserveHook) -> EventObserveHook:
    """
    Composes multiple event observers into a single observer.
    """

    def _composed(event: ExecutionEvent) -> None:
        for observer in observers:
            observer(event)

    return _composed


# ==================================================
# In-memory Metrics
# ==================================================


def _labels_key(labels: LabelMap) -> tuple[tuple[str, str], ...]:
    return tuple(sorted((str(key), str(value)) for key, value in labels.items()))


@dataclass(frozen=True)
class MetricPoint:
    """
    Single metric point lookup result.
    """

    name: str
    labels: Mapping[str, str]
    value: int | float


class InMemoryMetricsAdapter:
    """
    Event observer that aggregates statement and transaction metrics in memory.
    """

    def __init__(self) -> None:
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}
        self._histograms: dict[tuple[str, tuple[tuple[str, str], ...]], list[float]] = {}

    def __call__(self, event: ExecutionEvent) -> None:
        if event.event == "query.end":
            labels = {
                "operation": event.operation or "unknown",
                "command_kind": event.command_kind or "unknown",
            }
            self._inc("fluentsql_statements_total", labels, 1)
            if not event.success:
                failure_labels = dict(labels, error_type=event.error_type or "unknown")
                self._inc("fluentsql_statement_failures_total", failure_labels, 1)
            if event.duration_ms is not None:
                self._observe("fluentsql_statement_duration_ms", labels, event.duration_ms)
            return

        if event.event in {"txn.commit", "txn.rollback"}:
            outcome = event.event.split(".", 1)[1]
            labels = {"outcome": outcome, "success": str(event.success).lower()}
            self._inc("fluentsql_transactions_total", labels, 1)
            if event.duration_ms is not None:
                self._observe("fluentsql_transaction_duration_ms", {"outcome": outcome}, event.duration_ms)
            return

        if event.event == "connection.open":
            self._inc("fluentsql_connections_opened_total", {}, 1)

    def _inc(self, metric: str, labels: LabelMap, delta: int) -> None:
        key = (metric, _labels_key(labels))
        self._counters[key] = self._counters.get(key, 0) + delta

    def _observe(self, metric: str, labels: LabelMap, value: float) -> None:
        key = (metric, _labels_key(labels))
        self._histograms.setdefault(key, []).append(value)

    def counter_value(self, metric: str, labels: LabelMap | None = None) -> int:
        return self._counters.get((metric, _labels_key(labels or {})), 0)

    def histogram_values(self, metric: str, labels: LabelMap | None = None) -> list[float]:
        return list(self._histograms.get((metric, _labels_key(labels or {})), []))

    def counters(self) -> list[MetricPoint]:
        return [
            MetricPoint(name=name, labels=dict(label_key), value=value)
            for (name, label_key), value in self._counters.items()
        ]
