"""
HTTP-level tests: the routers wired to a real SQLite store.
"""
from datetime import date, timedelta

import pytest


@pytest.fixture()
def habit(client, headers):
    r = client.post("/habits", json={"name": "Meditate"}, headers=headers)
    assert r.status_code == 201
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


class TestHabitEndpoints:
    def test_create_defaults(self, habit, user_id):
        assert habit["user_id"] == user_id
        assert habit["color"] == "#3B82F6"
        assert habit["frequency"] == {"type": "daily"}
        assert habit["is_active"] is True

    def test_create_weekly(self, client, headers):
        r = client.post(
            "/habits",
            json={"name": "Gym", "color": "#10b981",
                  "frequency": {"type": "weekly", "daysOfWeek": [5, 1]}},
            headers=headers,
        )
        assert r.status_code == 201
        assert r.json()["frequency"] == {"type": "weekly", "daysOfWeek": [1, 5]}
        assert r.json()["color"] == "#10B981"

    def test_list_get_patch(self, client, headers, habit):
        r = client.get("/habits", headers=headers)
        assert r.json()["total"] == 1

        r = client.patch(f"/habits/{habit['id']}", json={"name": "Sit"}, headers=headers)
        assert r.status_code == 200
        assert r.json()["name"] == "Sit"

        r = client.get(f"/habits/{habit['id']}", headers=headers)
        assert r.json()["name"] == "Sit"

    def test_soft_delete(self, client, headers, habit):
        r = client.delete(f"/habits/{habit['id']}", headers=headers)
        assert r.status_code == 204

        assert client.get("/habits", headers=headers).json()["total"] == 0
        r = client.get("/habits", params={"include_inactive": True}, headers=headers)
        assert r.json()["total"] == 1

    def test_other_users_habit_is_not_found(self, client, habit):
        r = client.get(f"/habits/{habit['id']}", headers={"X-User-Id": "someone-else"})
        assert r.status_code == 404


class TestLogEndpoints:
    def test_put_creates_then_overwrites(self, client, headers, habit):
        today = date.today().isoformat()
        url = f"/habits/{habit['id']}/logs/{today}"

        r = client.put(url, json={"status": "completed"}, headers=headers)
        assert r.status_code == 200
        body = r.json()
        assert body["created"] is True
        assert body["log"]["status"] == "completed"
        assert body["stats"]["current_streak"] == 1
        assert body["stats"]["completion_rate"] == 100

        r = client.put(url, json={"status": "missed"}, headers=headers)
        body = r.json()
        assert body["created"] is False
        assert body["stats"]["current_streak"] == 0
        assert body["stats"]["total_completed"] == 0
        assert body["stats"]["total_missed"] == 1

    def test_pending_is_not_a_loggable_status(self, client, headers, habit):
        r = client.put(
            f"/habits/{habit['id']}/logs/{date.today().isoformat()}",
            json={"status": "pending"},
            headers=headers,
        )
        assert r.status_code == 422

    def test_bad_date(self, client, headers, habit):
        r = client.put(
            f"/habits/{habit['id']}/logs/2024-02-30",
            json={"status": "completed"},
            headers=headers,
        )
        assert r.status_code == 422

    def test_undo_reverts_to_pending(self, client, headers, habit):
        today = date.today().isoformat()
        client.put(f"/habits/{habit['id']}/logs/{today}", json={"status": "completed"}, headers=headers)

        r = client.delete(f"/habits/{habit['id']}/logs/{today}", headers=headers)
        assert r.status_code == 204
        r = client.delete(f"/habits/{habit['id']}/logs/{today}", headers=headers)
        assert r.status_code == 204

        view = client.get("/today", params={"day": today}, headers=headers).json()
        assert view["pending"] == 1
        assert view["items"][0]["status"] == "pending"
        assert view["items"][0]["log"] is None

        stats = client.get(f"/habits/{habit['id']}/stats", headers=headers).json()
        assert stats["total_completed"] == 0

    def test_history_range(self, client, headers, habit):
        base = date.today()
        for offset in (0, 2, 40):
            day = (base - timedelta(days=offset)).isoformat()
            client.put(f"/habits/{habit['id']}/logs/{day}", json={"status": "completed"}, headers=headers)

        r = client.get(f"/habits/{habit['id']}/logs", headers=headers)
        assert r.status_code == 200
        assert r.json()["total"] == 2

        r = client.get(
            f"/habits/{habit['id']}/logs",
            params={"start": (base - timedelta(days=60)).isoformat(), "end": base.isoformat()},
            headers=headers,
        )
        dates = [item["date"] for item in r.json()["items"]]
        assert dates == sorted(dates, reverse=True)
        assert len(dates) == 3

    def test_recompute_endpoint(self, client, headers, habit):
        r = client.post(f"/habits/{habit['id']}/stats/recompute", headers=headers)
        assert r.status_code == 200
        assert r.json()["current_streak"] == 0


class TestTodayEndpoint:
    def test_only_due_habits(self, client, headers):
        client.post("/habits", json={"name": "Daily"}, headers=headers)
        client.post(
            "/habits",
            json={"name": "Mondays", "frequency": {"type": "weekly", "daysOfWeek": [1]}},
            headers=headers,
        )

        monday = client.get("/today", params={"day": "2024-03-11"}, headers=headers).json()
        tuesday = client.get("/today", params={"day": "2024-03-12"}, headers=headers).json()

        assert sorted(i["habit"]["name"] for i in monday["items"]) == ["Daily", "Mondays"]
        assert [i["habit"]["name"] for i in tuesday["items"]] == ["Daily"]
        assert tuesday["day"] == "2024-03-12"

    def test_counts(self, client, headers, habit):
        client.put(f"/habits/{habit['id']}/logs/2024-03-11", json={"status": "missed"}, headers=headers)
        view = client.get("/today", params={"day": "2024-03-11"}, headers=headers).json()
        assert (view["total"], view["completed"], view["missed"], view["pending"]) == (1, 0, 1, 0)

    def test_stats_timestamp_matches_stats_endpoint(self, client, headers, habit):
        client.put(f"/habits/{habit['id']}/logs/2024-03-11", json={"status": "completed"}, headers=headers)
        view = client.get("/today", params={"day": "2024-03-11"}, headers=headers).json()
        stored = client.get(f"/habits/{habit['id']}/stats", headers=headers).json()

        assert stored["last_updated"] is not None
        assert view["items"][0]["stats"]["last_updated"] == stored["last_updated"]


class TestAnalyticsEndpoints:
    def test_weekly_and_monthly_shapes(self, client, headers, habit):
        client.put(
            f"/habits/{habit['id']}/logs/{date.today().isoformat()}",
            json={"status": "completed"},
            headers=headers,
        )
        weekly = client.get("/analytics/weekly", params={"weeks_back": 2}, headers=headers).json()
        assert len(weekly["items"]) == 3
        assert weekly["items"][-1]["completed"] == 1

        monthly = client.get("/analytics/monthly", params={"months_back": 0}, headers=headers).json()
        assert len(monthly["items"]) == 1
        assert monthly["items"][0]["completion_rate"] == 100

    def test_weekdays(self, client, headers, habit):
        today = date.today()
        client.put(
            f"/habits/{habit['id']}/logs/{today.isoformat()}",
            json={"status": "completed"},
            headers=headers,
        )
        body = client.get("/analytics/weekdays", params={"days_back": 7}, headers=headers).json()
        assert [i["day_of_week"] for i in body["items"]] == list(range(7))
        assert body["end"] == today.isoformat()
        assert body["best_day"]["day_of_week"] == (today.weekday() + 1) % 7
        assert body["best_day"]["completed"] == 1

    def test_weekdays_empty(self, client, headers):
        body = client.get("/analytics/weekdays", headers=headers).json()
        assert body["best_day"] is None
        assert all(i["completed"] == 0 for i in body["items"])

    def test_weeks_back_out_of_range(self, client, headers):
        r = client.get("/analytics/weekly", params={"weeks_back": 500}, headers=headers)
        assert r.status_code == 422

    def test_mark_missed(self, client, headers, habit):
        r = client.post("/analytics/mark-missed", headers=headers)
        assert r.status_code == 200
        body = r.json()
        assert body["marked_habit_ids"] == [habit["id"]]
        assert body["day"] == (date.today() - timedelta(days=1)).isoformat()

        again = client.post("/analytics/mark-missed", headers=headers).json()
        assert again["marked_habit_ids"] == []


class TestResetEndpoint:
    def test_reset(self, client, headers, habit):
        client.put(
            f"/habits/{habit['id']}/logs/{date.today().isoformat()}",
            json={"status": "completed"},
            headers=headers,
        )
        r = client.delete("/users/me/data", headers=headers)
        assert r.status_code == 200
        assert r.json() == {"habits_deleted": 1, "logs_deleted": 1, "stats_deleted": 1}
        assert client.get("/habits", params={"include_inactive": True}, headers=headers).json()["total"] == 0
