"""HTTP binding: status codes, error bodies and role checks."""

from datetime import timedelta

from conftest import T0, auth_headers


def start(client, user_id, task_id, **extra):
    return client.post("/timers/start", json={"task_id": task_id, **extra}, headers=auth_headers(user_id))


class TestTimerEndpoints:
    def test_full_cycle(self, client, seed):
        started = start(client, seed.alice, seed.task_a, note="Hero section")
        assert started.status_code == 200
        log = started.json()
        assert log["status"] == "pending"
        assert log["note"] == "Hero section"
        assert log["end_time"] is None

        headers = auth_headers(seed.alice)
        paused = client.post(f"/timers/{log['id']}/pause", headers=headers)
        assert paused.status_code == 200
        assert paused.json()["is_paused"] is True

        resumed = client.post(f"/timers/{log['id']}/resume", headers=headers)
        assert resumed.json()["is_paused"] is False

        stopped = client.post(f"/timers/{log['id']}/stop", headers=headers)
        assert stopped.status_code == 200
        assert stopped.json()["end_time"] is not None

        again = client.post(f"/timers/{log['id']}/stop", headers=headers)
        assert again.status_code == 409
        assert again.json() == {"detail": "Timer is already stopped", "error": "invalid_state"}

    def test_active_timer(self, client, seed):
        headers = auth_headers(seed.alice)
        assert client.get("/timers/active", headers=headers).json() is None

        log = start(client, seed.alice, seed.task_a).json()
        active = client.get("/timers/active", headers=headers).json()
        assert active["id"] == log["id"]
        assert active["current_effective_duration_seconds"] >= 0
        assert "server_time" in active

    def test_conflict(self, client, seed):
        start(client, seed.alice, seed.task_a)
        response = start(client, seed.alice, seed.task_b)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_unknown_task(self, client, seed):
        response = start(client, seed.alice, 999)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_other_users_timer_is_hidden(self, client, seed):
        log = start(client, seed.alice, seed.task_a).json()
        response = client.post(f"/timers/{log['id']}/pause", headers=auth_headers(seed.bob))
        assert response.status_code == 404

    def test_requires_token(self, client, seed):
        assert client.post("/timers/start", json={"task_id": seed.task_a}).status_code == 401
        bad = {"Authorization": "Bearer not-a-token"}
        assert client.get("/timers/active", headers=bad).status_code == 401

    def test_long_running_is_for_approvers(self, client, seed):
        assert client.get("/timers/long-running", headers=auth_headers(seed.alice)).status_code == 403

        start(client, seed.alice, seed.task_a)
        response = client.get(
            "/timers/long-running", params={"threshold_hours": 1}, headers=auth_headers(seed.manager)
        )
        assert response.status_code == 200
        assert response.json() == {"threshold_hours": 1.0, "count": 0, "data": []}


class TestTimeLogEndpoints:
    def manual(self, client, user_id, task_id, seconds=7200):
        return client.post(
            "/timelogs/manual",
            json={
                "task_id": task_id,
                "start_time": T0.isoformat(),
                "end_time": (T0 + timedelta(seconds=seconds)).isoformat(),
                "note": "Client call",
            },
            headers=auth_headers(user_id),
        )

    def test_manual_entry(self, client, seed):
        response = self.manual(client, seed.alice, seed.task_a)
        assert response.status_code == 200
        body = response.json()
        assert body["duration_total_seconds"] == 7200
        assert body["effective_duration_seconds"] == 7200
        assert body["is_manual"] is True
        assert client.get("/timers/active", headers=auth_headers(seed.alice)).json() is None

    def test_manual_entry_rejects_reversed_times(self, client, seed):
        response = self.manual(client, seed.alice, seed.task_a, seconds=-60)
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_approval_requires_approver(self, client, seed):
        log = self.manual(client, seed.alice, seed.task_a).json()
        response = client.post(f"/timelogs/{log['id']}/approve", headers=auth_headers(seed.alice))
        assert response.status_code == 403

    def test_approve_then_reject(self, client, seed):
        log = self.manual(client, seed.alice, seed.task_a).json()
        headers = auth_headers(seed.manager)

        approved = client.post(f"/timelogs/{log['id']}/approve", headers=headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

        rejected = client.post(f"/timelogs/{log['id']}/reject", json={"reason": "Late"}, headers=headers)
        assert rejected.status_code == 409
        assert rejected.json()["error"] == "invalid_state"

    def test_reject_needs_reason(self, client, seed):
        log = self.manual(client, seed.alice, seed.task_a).json()
        headers = auth_headers(seed.manager)

        missing = client.post(f"/timelogs/{log['id']}/reject", json={}, headers=headers)
        assert missing.status_code == 422
        assert missing.json()["detail"] == "reason is required"

        blank = client.post(f"/timelogs/{log['id']}/reject", json={"reason": "  "}, headers=headers)
        assert blank.status_code == 422
        assert blank.json()["error"] == "validation_error"

    def test_cannot_approve_running_timer(self, client, seed):
        log = start(client, seed.alice, seed.task_a).json()
        response = client.post(f"/timelogs/{log['id']}/approve", headers=auth_headers(seed.manager))
        assert response.status_code == 409
        assert response.json()["detail"] == "Cannot approve an open timer"

    def test_get_single_log_visibility(self, client, seed):
        log = self.manual(client, seed.alice, seed.task_a).json()
        assert client.get(f"/timelogs/{log['id']}", headers=auth_headers(seed.alice)).status_code == 200
        assert client.get(f"/timelogs/{log['id']}", headers=auth_headers(seed.manager)).status_code == 200
        assert client.get(f"/timelogs/{log['id']}", headers=auth_headers(seed.bob)).status_code == 404

    def test_task_totals(self, client, seed):
        self.manual(client, seed.alice, seed.task_a, seconds=1800)
        response = client.get(f"/timelogs/task/{seed.task_a}", headers=auth_headers(seed.alice))
        assert response.status_code == 200
        assert response.json()["summary"]["total_duration_seconds"] == 1800

    def test_event_feed_is_scoped_to_caller(self, client, seed):
        self.manual(client, seed.alice, seed.task_a)
        self.manual(client, seed.bob, seed.task_c)

        mine = client.get("/timelogs/events", headers=auth_headers(seed.bob)).json()
        assert {e["user_id"] for e in mine} == {seed.bob}

        everyone = client.get("/timelogs/events", headers=auth_headers(seed.manager)).json()
        assert {e["user_id"] for e in everyone} == {seed.alice, seed.bob}


class TestTimesheetEndpoint:
    def test_employees_only_see_their_own_logs(self, client, seed):
        for user_id, task_id in ((seed.alice, seed.task_a), (seed.bob, seed.task_c)):
            client.post(
                "/timelogs/manual",
                json={
                    "task_id": task_id,
                    "start_time": T0.isoformat(),
                    "end_time": (T0 + timedelta(minutes=30)).isoformat(),
                },
                headers=auth_headers(user_id),
            )

        params = {"view": "daily", "date": T0.date().isoformat(), "user_id": seed.bob}
        own = client.get("/timesheet", params=params, headers=auth_headers(seed.alice)).json()
        assert [item["user_id"] for item in own["data"]] == [seed.alice]

        as_manager = client.get("/timesheet", params=params, headers=auth_headers(seed.manager)).json()
        assert [item["user_id"] for item in as_manager["data"]] == [seed.bob]
        assert as_manager["summary"]["total_duration_seconds"] == 1800
        assert as_manager["summary"]["total_hours"] == 0.5

    def test_invalid_view_is_rejected(self, client, seed):
        response = client.get("/timesheet", params={"view": "monthly"}, headers=auth_headers(seed.alice))
        assert response.status_code == 422

    def test_date_without_view_filters_to_that_day(self, client, seed):
        headers = auth_headers(seed.alice)
        for day_offset, minutes in ((0, 10), (3, 20)):
            start_time = T0 + timedelta(days=day_offset)
            client.post(
                "/timelogs/manual",
                json={
                    "task_id": seed.task_a,
                    "start_time": start_time.isoformat(),
                    "end_time": (start_time + timedelta(minutes=minutes)).isoformat(),
                },
                headers=headers,
            )

        response = client.get("/timesheet", params={"date": T0.date().isoformat()}, headers=headers)
        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["total_logs"] == 1
        assert summary["total_duration_seconds"] == 600
