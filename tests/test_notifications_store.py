from __future__ import annotations

import unittest

from badge.models import Notification, NotificationType
from badge.services.notifications import session_notifications_enabled
from db_support import NOW_MS, AppHarness, error_code


class NotificationStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.harness = AppHarness()
        self.client = self.harness.client
        self.harness.as_user("user-1")

    def tearDown(self) -> None:
        self.harness.close()

    def _add_notification(self, *, user_id: str, title: str, created_at: int, read: bool = False) -> int:
        with self.harness.db() as db:
            row = Notification(
                user_id=user_id,
                title=title,
                message=f"{title} body",
                type=NotificationType.INFO,
                read=read,
                created_at=created_at,
            )
            db.add(row)
            db.commit()
            return row.id

    def _is_read(self, notification_id: int) -> bool:
        with self.harness.db() as db:
            return db.get(Notification, notification_id).read

    def test_list_is_newest_first_and_scoped_to_caller(self) -> None:
        self._add_notification(user_id="user-1", title="old", created_at=NOW_MS - 2000)
        self._add_notification(user_id="user-1", title="new", created_at=NOW_MS)
        self._add_notification(user_id="user-2", title="foreign", created_at=NOW_MS + 1000)

        response = self.client.get("/api/notifications")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["title"] for item in response.json()], ["new", "old"])

    def test_only_unread_filter(self) -> None:
        self._add_notification(user_id="user-1", title="seen", created_at=NOW_MS - 1000, read=True)
        self._add_notification(user_id="user-1", title="fresh", created_at=NOW_MS)

        response = self.client.get("/api/notifications", params={"only_unread": "true"})

        self.assertEqual([item["title"] for item in response.json()], ["fresh"])

    def test_mark_as_read_is_idempotent(self) -> None:
        notification_id = self._add_notification(user_id="user-1", title="hello", created_at=NOW_MS)

        first = self.client.post(f"/api/notifications/{notification_id}/read")
        second = self.client.post(f"/api/notifications/{notification_id}/read")

        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.json()["read"])
        self.assertEqual(second.status_code, 200)
        self.assertTrue(self._is_read(notification_id))

    def test_mark_as_read_on_foreign_notification_is_not_found(self) -> None:
        foreign_id = self._add_notification(user_id="user-2", title="private", created_at=NOW_MS)

        response = self.client.post(f"/api/notifications/{foreign_id}/read")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(error_code(response), "NOTIFICATION_NOT_FOUND")
        self.assertFalse(self._is_read(foreign_id))

        response = self.client.post("/api/notifications/9999/read")
        self.assertEqual(response.status_code, 404)

    def test_mark_all_as_read_reports_count_and_leaves_others_untouched(self) -> None:
        self._add_notification(user_id="user-1", title="a", created_at=NOW_MS)
        self._add_notification(user_id="user-1", title="b", created_at=NOW_MS + 1)
        self._add_notification(user_id="user-1", title="c", created_at=NOW_MS + 2, read=True)
        foreign_id = self._add_notification(user_id="user-2", title="d", created_at=NOW_MS)

        response = self.client.post("/api/notifications/read-all")

        self.assertEqual(response.json(), {"ok": True, "updated": 2})
        self.assertEqual(self.client.get("/api/notifications", params={"only_unread": True}).json(), [])
        self.assertFalse(self._is_read(foreign_id))

    def test_unauthenticated_reads_are_empty_and_writes_fail(self) -> None:
        self.harness.as_user(None)

        self.assertEqual(self.client.get("/api/notifications").json(), [])
        self.assertIsNone(self.client.get("/api/notifications/preferences").json())
        self.assertEqual(self.client.post("/api/notifications/read-all").status_code, 401)
        self.assertEqual(self.client.patch("/api/notifications/preferences", json={"sound": False}).status_code, 401)


class NotificationPreferenceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.harness = AppHarness()
        self.client = self.harness.client
        self.harness.as_user("user-1")

    def tearDown(self) -> None:
        self.harness.close()

    def test_defaults_when_no_record_exists(self) -> None:
        payload = self.client.get("/api/notifications/preferences").json()
        self.assertEqual(
            payload,
            {"id": None, "session_start": True, "session_end": True, "weekly_report": True, "sound": True},
        )

    def test_first_update_creates_record_and_later_updates_keep_identity(self) -> None:
        created = self.client.patch("/api/notifications/preferences", json={"sound": False}).json()

        self.assertIsNotNone(created["id"])
        self.assertFalse(created["sound"])
        self.assertTrue(created["session_start"])
        self.assertTrue(created["weekly_report"])

        updated = self.client.patch("/api/notifications/preferences", json={"session_end": False}).json()

        self.assertEqual(updated["id"], created["id"])
        self.assertFalse(updated["session_end"])
        self.assertFalse(updated["sound"])
        self.assertEqual(self.client.get("/api/notifications/preferences").json(), updated)

    def test_preferences_are_per_user(self) -> None:
        self.client.patch("/api/notifications/preferences", json={"session_start": False})

        with self.harness.db() as db:
            self.assertFalse(session_notifications_enabled(db, user_id="user-1", field="session_start"))
            self.assertTrue(session_notifications_enabled(db, user_id="user-2", field="session_start"))

    def test_unknown_preference_name_is_rejected(self) -> None:
        with self.harness.db() as db:
            with self.assertRaises(ValueError):
                session_notifications_enabled(db, user_id="user-1", field="vibration")


if __name__ == "__main__":
    unittest.main()
