"""
Tests for the error hierarchy and the JSON error envelope.
"""
from habit_tracker.core.errors import (
    HabitNotFoundError,
    HabitTrackerException,
    MissingUserError,
    NotFoundError,
    StorageError,
    ValidationError,
)


class TestExceptionClasses:
    def test_habit_not_found(self):
        exc = HabitNotFoundError(42)
        assert isinstance(exc, NotFoundError)
        assert exc.http_status == 404
        assert exc.to_dict() == {
            "code": "HABIT_NOT_FOUND",
            "message": "Habit 42 not found.",
            "details": {"habit_id": 42},
        }

    def test_storage_error_names_operation(self):
        exc = StorageError("upsert_log")
        assert exc.http_status == 503
        assert exc.code == "STORAGE_ERROR"
        assert exc.details == {"operation": "upsert_log"}
        assert "upsert_log" in exc.message

    def test_validation_error_without_field_has_no_details(self):
        exc = ValidationError("bad")
        assert exc.http_status == 422
        assert exc.to_dict() == {"code": "VALIDATION_ERROR", "message": "bad"}

    def test_all_are_app_exceptions(self):
        for exc in (HabitNotFoundError(1), StorageError("x"), ValidationError("x"), MissingUserError()):
            assert isinstance(exc, HabitTrackerException)


class TestEnvelope:
    def test_not_found(self, client, headers):
        r = client.get("/habits/999999", headers=headers)
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "HABIT_NOT_FOUND"
        assert body["details"] == {"habit_id": 999999}

    def test_request_validation(self, client, headers):
        r = client.post("/habits", json={"color": "#FFFFFF"}, headers=headers)
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert any(e["field"] == "name" for e in body["details"]["errors"])

    def test_service_validation(self, client, headers):
        r = client.post(
            "/habits",
            json={"name": "Walk", "frequency": {"type": "weekly", "daysOfWeek": [9]}},
            headers=headers,
        )
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_missing_user_header(self, client):
        r = client.get("/habits")
        assert r.status_code == 401
        assert r.json()["code"] == "MISSING_USER"

    def test_blank_user_header(self, client):
        r = client.get("/today", headers={"X-User-Id": "   "})
        assert r.status_code == 401
