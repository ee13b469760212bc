from __future__ import annotations

import json
import logging
import sys
import unittest

from badge.logging_utils import JsonFormatter


class JsonFormatterTests(unittest.TestCase):
    def test_extra_fields_are_emitted_next_to_message(self) -> None:
        record = logging.LogRecord("badge.sessions", logging.INFO, __file__, 10, "session_clock_in", None, None)
        record.employee_id = 7
        record.session_id = 42

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "session_clock_in")
        self.assertEqual(payload["logger"], "badge.sessions")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["employee_id"], 7)
        self.assertEqual(payload["session_id"], 42)
        self.assertNotIn("lineno", payload)

    def test_exception_is_serialized(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.getLogger("badge.test").makeRecord(
                "badge.test", logging.ERROR, __file__, 1, "failed", None, exc_info=sys.exc_info()
            )

        payload = json.loads(JsonFormatter().format(record))

        self.assertIn("RuntimeError: boom", payload["exception"])


if __name__ == "__main__":
    unittest.main()
