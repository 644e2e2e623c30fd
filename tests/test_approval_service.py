from datetime import timedelta

import pytest

from conftest import T0
from timekeeper.core.errors import NotFoundError, StateError, ValidationError
from timekeeper.services import approval_service
from timekeeper.services.approval_service import approve_time_log, reject_time_log
from timekeeper.services.event_service import list_events
from timekeeper.services.timer_service import record_manual_time, start_timer, stop_timer


@pytest.fixture
def closed_log(db, seed):
    log = start_timer(seed.alice, seed.task_a, db, now=T0)
    return stop_timer(seed.alice, log.id, db, now=T0 + timedelta(minutes=30))


class TestApprove:
    def test_approve_pending_log(self, db, seed, closed_log):
        log = approve_time_log(closed_log.id, seed.manager, db, now=T0 + timedelta(hours=1))

        assert log.status == "approved"
        assert log.reviewed_by == seed.manager
        assert log.reviewed_at is not None
        assert log.rejection_reason is None

    def test_cannot_approve_open_timer(self, db, seed):
        log = start_timer(seed.alice, seed.task_a, db, now=T0)
        with pytest.raises(StateError, match="open timer"):
            approve_time_log(log.id, seed.manager, db)
        db.refresh(log)
        assert log.status == "pending"

    def test_approve_twice_fails(self, db, seed, closed_log):
        approve_time_log(closed_log.id, seed.manager, db)
        with pytest.raises(StateError, match="already approved"):
            approve_time_log(closed_log.id, seed.manager, db)

    def test_unknown_log(self, db, seed):
        with pytest.raises(NotFoundError):
            approve_time_log(4242, seed.manager, db)

    def test_manual_logs_need_approval_too(self, db, seed):
        log = record_manual_time(seed.alice, seed.task_a, T0, T0 + timedelta(hours=2), db)
        assert approve_time_log(log.id, seed.manager, db).status == "approved"


class TestReject:
    def test_reject_with_reason(self, db, seed, closed_log):
        log = reject_time_log(closed_log.id, seed.manager, "  Wrong task  ", db)
        assert log.status == "rejected"
        assert log.rejection_reason == "Wrong task"

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, db, seed, closed_log, reason):
        with pytest.raises(ValidationError):
            reject_time_log(closed_log.id, seed.manager, reason, db)
        db.refresh(closed_log)
        assert closed_log.status == "pending"

    def test_cannot_reject_open_timer(self, db, seed):
        log = start_timer(seed.alice, seed.task_a, db, now=T0)
        with pytest.raises(StateError):
            reject_time_log(log.id, seed.manager, "Too long", db)

    def test_unknown_log_reported_before_reason(self, db, seed):
        with pytest.raises(NotFoundError):
            reject_time_log(4242, seed.manager, "  ", db)

    def test_log_is_fetched_once(self, db, seed, closed_log, monkeypatch):
        calls = []
        real_get = approval_service.get_time_log

        def counting_get(log_id, session, *args, **kwargs):
            calls.append(log_id)
            return real_get(log_id, session, *args, **kwargs)

        monkeypatch.setattr(approval_service, "get_time_log", counting_get)
        reject_time_log(closed_log.id, seed.manager, "Duplicate", db)
        assert calls == [closed_log.id]


class TestSingleTerminalTransition:
    def test_approve_then_reject(self, db, seed, closed_log):
        approve_time_log(closed_log.id, seed.manager, db)
        with pytest.raises(StateError):
            reject_time_log(closed_log.id, seed.manager, "Changed my mind", db)
        db.refresh(closed_log)
        assert closed_log.status == "approved"
        assert closed_log.rejection_reason is None

    def test_reject_then_approve(self, db, seed, closed_log):
        reject_time_log(closed_log.id, seed.manager, "Duplicate", db)
        with pytest.raises(StateError):
            approve_time_log(closed_log.id, seed.manager, db)
        db.refresh(closed_log)
        assert closed_log.status == "rejected"

    def test_decision_emits_event_for_owner(self, db, seed, closed_log):
        approve_time_log(closed_log.id, seed.manager, db)
        events = list_events(db, time_log_id=closed_log.id)
        approved = [e for e in events if e.event_type == "log_approved"]
        assert len(approved) == 1
        assert approved[0].user_id == seed.alice
        assert approved[0].actor_id == seed.manager
