from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.models import ActivityLog
from app.utils.activity import ActivityLogBuffer, flush_activity_logs, log_activity


def test_log_activity_flushes_when_batch_is_full(app):
    with app.test_request_context():
        log_activity("Did something", None)
    assert ActivityLog.query.filter_by(activity="Did something").count() == 1


def test_buffered_entries_flush_on_demand(app):
    app.extensions["activity_log"] = ActivityLogBuffer(app, batch_size=10)
    with app.test_request_context():
        log_activity("First")
        log_activity("Second")
        assert ActivityLog.query.count() == 0
        flush_activity_logs()
    assert [log.activity for log in ActivityLog.query.order_by(ActivityLog.id)] == [
        "First",
        "Second",
    ]


def test_pending_entries_are_written_when_the_request_ends(app):
    buffer = app.extensions["activity_log"] = ActivityLogBuffer(app, batch_size=10)
    with app.test_request_context():
        log_activity("Viewed invoices")
        assert len(buffer) == 1
        assert ActivityLog.query.count() == 0
    assert len(buffer) == 0
    assert ActivityLog.query.filter_by(activity="Viewed invoices").count() == 1


def test_failed_flush_is_rolled_back(app, monkeypatch):
    buffer = ActivityLogBuffer(app, batch_size=10)
    buffer.add("Lost", None)

    def broken_commit(self):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    buffer.flush()
    monkeypatch.undo()

    assert len(buffer) == 0
    assert ActivityLog.query.count() == 0
