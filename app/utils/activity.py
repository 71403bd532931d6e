"""Activity log buffering.

Entries recorded while a request is handled are written together when the
request ends, or earlier once ``ACTIVITY_LOG_BATCH_SIZE`` entries are waiting.
"""

from __future__ import annotations

import atexit
import threading
from typing import List, Optional

from flask import Flask, current_app
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from app.models import ActivityLog, db


class ActivityLogBuffer:
    """Pending :class:`ActivityLog` rows for one application."""

    def __init__(self, app: Flask, batch_size: int = 20) -> None:
        self.app = app
        self.batch_size = max(1, batch_size)
        self._pending: List[ActivityLog] = []
        self._lock = threading.Lock()

    def add(self, activity: str, user_id: Optional[int]) -> None:
        with self._lock:
            self._pending.append(ActivityLog(user_id=user_id, activity=activity))
            if len(self._pending) < self.batch_size:
                return
            batch = self._take()
        self._write(batch)

    def flush(self) -> None:
        with self._lock:
            batch = self._take()
        if batch:
            self._write(batch)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def _take(self) -> List[ActivityLog]:
        batch, self._pending = self._pending, []
        return batch

    def _write(self, batch: List[ActivityLog]) -> None:
        # A separate app context gets its own session, so the request's
        # session is never committed from here.
        with self.app.app_context():
            try:
                db.session.add_all(batch)
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                self.app.logger.exception(
                    "Dropped %d activity log entries", len(batch)
                )


def init_activity_log(app: Flask) -> ActivityLogBuffer:
    """Attach an activity buffer to ``app`` and flush it after each request."""
    buffer = ActivityLogBuffer(
        app, batch_size=app.config.get("ACTIVITY_LOG_BATCH_SIZE", 20)
    )
    app.extensions["activity_log"] = buffer
    atexit.register(buffer.flush)

    @app.teardown_request
    def flush_after_request(exc):
        flush_activity_logs()

    return buffer


def flush_activity_logs() -> None:
    """Write any pending activity logs now."""
    buffer = current_app.extensions.get("activity_log")
    if buffer:
        buffer.flush()


def log_activity(activity: str, user_id: Optional[int] = None) -> None:
    """Record an activity performed by ``user_id`` or the signed-in user."""
    if user_id is None:
        if current_user and not current_user.is_anonymous:
            user_id = current_user.id

    current_app.extensions["activity_log"].add(activity, user_id)
