"""
Task Management API: Telemetry Sink
===================================

What:  Fire-and-forget business events (logins, task lifecycle, slow
       operations) and counters.
How:   `TelemetryService` exposes typed `track_*` helpers on top of two
       primitives, `track_event(name, properties)` and
       `track_metric(name, value)`. The default sink writes one structured
       log line per call on the `taskmanager.telemetry` logger; subclasses
       can forward to a real collector.
Who:   Called by the credential verifier, the task endpoints and the
       performance timer.

A sink failure must never fail the request that emitted it, so the
primitives log and drop their own errors.
"""

import logging
from datetime import timedelta
from typing import Dict, Mapping, Optional, Union

logger = logging.getLogger("taskmanager.telemetry")

PropertyValue = Union[str, bool, int, float]


class TelemetryService:
    def track_event(self, name: str, properties: Optional[Mapping[str, PropertyValue]] = None) -> None:
        try:
            self._emit_event(name, dict(properties or {}))
        except Exception:
            logger.exception("Telemetry event %s dropped", name)

    def track_metric(self, name: str, value: float, properties: Optional[Mapping[str, PropertyValue]] = None) -> None:
        try:
            self._emit_metric(name, value, dict(properties or {}))
        except Exception:
            logger.exception("Telemetry metric %s dropped", name)

    # ── Sink primitives (override to forward elsewhere) ──────────────────

    def _emit_event(self, name: str, properties: Dict[str, PropertyValue]) -> None:
        logger.info("event %s %s", name, properties, extra={"telemetry_event": name})

    def _emit_metric(self, name: str, value: float, properties: Dict[str, PropertyValue]) -> None:
        logger.debug("metric %s=%s %s", name, value, properties)

    # ── Business events ───────────────────────────────────────────────────

    def track_user_login(self, username: str, role: str, success: bool) -> None:
        self.track_event(
            "UserLoginSuccess" if success else "UserLoginFailed",
            {"Username": username, "Role": role, "Success": success},
        )
        if success:
            self.track_metric(f"LoginSuccess_{role}", 1)
        else:
            self.track_metric("LoginFailures", 1)

    def track_task_created(
        self, task_id: int, priority: str, has_due_date: bool, user_id: Optional[str] = None
    ) -> None:
        properties: Dict[str, PropertyValue] = {
            "TaskId": task_id,
            "Priority": priority,
            "HasDueDate": has_due_date,
        }
        if user_id:
            properties["UserId"] = user_id
        self.track_event("TaskCreated", properties)
        self.track_metric("TasksCreated", 1)

    def track_task_completed(
        self, task_id: int, time_to_complete: timedelta, user_id: Optional[str] = None
    ) -> None:
        hours = time_to_complete.total_seconds() / 3600
        properties: Dict[str, PropertyValue] = {
            "TaskId": task_id,
            "CompletionTimeHours": round(hours, 2),
        }
        if user_id:
            properties["UserId"] = user_id
        self.track_event("TaskCompleted", properties)
        self.track_metric("TasksCompleted", 1)
        self.track_metric("CompletionTimeDays", hours / 24)

    def track_task_deleted(self, task_id: int, user_id: Optional[str] = None) -> None:
        properties: Dict[str, PropertyValue] = {"TaskId": task_id}
        if user_id:
            properties["UserId"] = user_id
        self.track_event("TaskDeleted", properties)
        self.track_metric("TasksDeleted", 1)

    def track_slow_operation(
        self, operation_name: str, duration_ms: float, properties: Optional[Mapping[str, PropertyValue]] = None
    ) -> None:
        props: Dict[str, PropertyValue] = dict(properties or {})
        props["OperationName"] = operation_name
        props["DurationMs"] = round(duration_ms, 2)
        self.track_event("SlowOperation", props)
        self.track_metric(f"Duration_{operation_name}", duration_ms)
