from __future__ import annotations

import unittest

from sqlalchemy import select

from badge.models import AuditLog, EmployeeRole
from db_support import DAY_MS, HOUR_MS, NOW_MS, AppHarness, error_code


class AdminAccessTests(unittest.TestCase):
    def setUp(self) -> None:
        self.harness = AppHarness()
        self.client = self.harness.client
        self.worker = self.harness.add_employee(user_id="worker", code="EMP-001")
        self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - HOUR_MS)

    def tearDown(self) -> None:
        self.harness.close()

    def _admin_calls(self):  # type: ignore[no-untyped-def]
        employee_id = self.worker.id
        return [
            ("get", "/api/admin/employees", None, None),
            ("get", f"/api/admin/employees/{employee_id}", None, None),
            ("patch", f"/api/admin/employees/{employee_id}", {"role": "admin"}, None),
            ("delete", f"/api/admin/employees/{employee_id}", None, None),
            (
                "get",
                f"/api/admin/employees/{employee_id}/stats",
                None,
                {"start_date": NOW_MS - DAY_MS, "end_date": NOW_MS},
            ),
            ("get", f"/api/admin/employees/{employee_id}/overview", None, None),
        ]

    def _call(self, method: str, url: str, body, params):  # type: ignore[no-untyped-def]
        if body is not None:
            return self.client.request(method, url, json=body)
        return self.client.request(method, url, params=params)

    def test_non_admin_is_always_rejected(self) -> None:
        self.harness.as_user("worker")
        for method, url, body, params in self._admin_calls():
            with self.subTest(method=method, url=url):
                response = self._call(method, url, body, params)
                self.assertEqual(response.status_code, 403)
                self.assertEqual(error_code(response), "UNAUTHORIZED")
                self.assertNotIn("total_duration", response.json())

        with self.harness.db() as db:
            self.assertIsNotNone(db.get(type(self.worker), self.worker.id))
            self.assertEqual(db.get(type(self.worker), self.worker.id).role, EmployeeRole.EMPLOYEE)

    def test_user_without_employee_record_is_rejected(self) -> None:
        self.harness.as_user("stranger")
        response = self.client.get("/api/admin/employees")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(error_code(response), "UNAUTHORIZED")

    def test_unauthenticated_caller_is_rejected(self) -> None:
        self.harness.as_user(None)
        response = self.client.get("/api/admin/employees")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(error_code(response), "NOT_AUTHENTICATED")


class AdminDirectoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.harness = AppHarness()
        self.client = self.harness.client
        self.admin = self.harness.add_employee(
            user_id="boss",
            code="ADM-001",
            first_name="Anna",
            last_name="Neri",
            role=EmployeeRole.ADMIN,
        )
        self.worker = self.harness.add_employee(user_id="worker", code="EMP-001")
        self.harness.as_user("boss")

    def tearDown(self) -> None:
        self.harness.close()

    def test_list_employees(self) -> None:
        response = self.client.get("/api/admin/employees")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["employee_id"] for item in response.json()], ["ADM-001", "EMP-001"])

    def test_employee_details_and_missing_employee(self) -> None:
        payload = self.client.get(f"/api/admin/employees/{self.worker.id}").json()
        self.assertEqual(payload["user_id"], "worker")

        response = self.client.get("/api/admin/employees/9999")
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json())

    def test_update_applies_only_supplied_fields(self) -> None:
        response = self.client.patch(f"/api/admin/employees/{self.worker.id}", json={"last_name": "Gialli"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["first_name"], "Mario")
        self.assertEqual(payload["last_name"], "Gialli")
        self.assertEqual(payload["role"], "employee")

        response = self.client.patch(f"/api/admin/employees/{self.worker.id}", json={"role": "admin"})
        self.assertEqual(response.json()["role"], "admin")
        self.assertEqual(response.json()["last_name"], "Gialli")

        with self.harness.db() as db:
            audit = db.scalar(select(AuditLog).where(AuditLog.action == "EMPLOYEE_UPDATED").order_by(AuditLog.id))
        self.assertEqual(audit.actor_id, "boss")
        self.assertEqual(audit.details, {"last_name": "Gialli"})

    def test_update_rejects_blank_names(self) -> None:
        response = self.client.patch(f"/api/admin/employees/{self.worker.id}", json={"first_name": "   "})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(error_code(response), "VALIDATION_ERROR")
        self.assertEqual(self.client.get(f"/api/admin/employees/{self.worker.id}").json()["first_name"], "Mario")

    def test_update_trims_names(self) -> None:
        response = self.client.patch(f"/api/admin/employees/{self.worker.id}", json={"last_name": "  Gialli "})
        self.assertEqual(response.json()["last_name"], "Gialli")

    def test_update_missing_employee(self) -> None:
        response = self.client.patch("/api/admin/employees/9999", json={"first_name": "X"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(error_code(response), "EMPLOYEE_NOT_FOUND")

    def test_delete_removes_employee_and_sessions(self) -> None:
        self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - DAY_MS, end_time=NOW_MS - DAY_MS + HOUR_MS)
        self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - HOUR_MS)

        response = self.client.delete(f"/api/admin/employees/{self.worker.id}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True, "id": self.worker.id})
        self.assertIsNone(self.client.get(f"/api/admin/employees/{self.worker.id}").json())
        self.assertEqual(self.harness.count_sessions(employee_id=self.worker.id), 0)

        response = self.client.delete(f"/api/admin/employees/{self.worker.id}")
        self.assertEqual(response.status_code, 404)

    def test_employee_stats_over_range(self) -> None:
        start = NOW_MS - 2 * DAY_MS
        self.harness.add_session(employee_id=self.worker.id, start_time=start - 1, end_time=start + HOUR_MS)
        self.harness.add_session(employee_id=self.worker.id, start_time=start, end_time=start + HOUR_MS)
        self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - 600_000)

        response = self.client.get(
            f"/api/admin/employees/{self.worker.id}/stats",
            params={"start_date": start, "end_date": NOW_MS},
        )

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["total_duration"], 4_200_000)
        self.assertEqual(payload["sessions_count"], 2)
        self.assertEqual(len(payload["sessions"]), 2)

    def test_employee_stats_requires_range(self) -> None:
        response = self.client.get(f"/api/admin/employees/{self.worker.id}/stats")
        self.assertEqual(response.status_code, 422)

    def test_overview_reports_today_month_and_active_session(self) -> None:
        # 2026-03-10 10:00 UTC: one session earlier this month, one today still running.
        self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - 5 * DAY_MS, end_time=NOW_MS - 5 * DAY_MS + 2 * HOUR_MS)
        active = self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - HOUR_MS)
        # Previous month, ignored.
        self.harness.add_session(employee_id=self.worker.id, start_time=NOW_MS - 20 * DAY_MS, end_time=NOW_MS - 20 * DAY_MS + HOUR_MS)

        payload = self.client.get(f"/api/admin/employees/{self.worker.id}/overview").json()

        self.assertEqual(payload["today_duration"], HOUR_MS)
        self.assertEqual(payload["month_duration"], 3 * HOUR_MS)
        self.assertEqual(payload["active_session"]["id"], active.id)

    def test_overview_for_unknown_employee_is_empty(self) -> None:
        response = self.client.get("/api/admin/employees/9999/overview")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"today_duration": 0, "month_duration": 0, "active_session": None})

    def test_overview_without_active_session(self) -> None:
        payload = self.client.get(f"/api/admin/employees/{self.worker.id}/overview").json()
        self.assertEqual(payload, {"today_duration": 0, "month_duration": 0, "active_session": None})


if __name__ == "__main__":
    unittest.main()
