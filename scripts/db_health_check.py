#!/usr/bin/env python
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, inspect, text

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from badge.settings import get_settings

EXPECTED_HEAD = "0001_initial"
REQUIRED_TABLES = ("employees", "work_sessions", "notifications", "notification_preferences", "audit_logs")


def run() -> dict[str, Any]:
    engine = create_engine(get_settings().database_url)
    report: dict[str, Any] = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "checks": [],
    }

    def add(name: str, status: str, details: dict[str, Any]) -> None:
        report["checks"].append({"name": name, "status": status, "details": details})

    tables = set(inspect(engine).get_table_names())
    missing_tables = [table for table in REQUIRED_TABLES if table not in tables]
    add("required_tables", "fail" if missing_tables else "ok", {"missing": missing_tables})

    with engine.connect() as conn:
        current_versions: list[str] = []
        if "alembic_version" in tables:
            current_versions = [
                row[0]
                for row in conn.execute(text("select version_num from alembic_version")).fetchall()
            ]
        add("alembic_version", "ok" if current_versions else "fail", {"current": current_versions})
        add(
            "migration_up_to_date",
            "ok" if EXPECTED_HEAD in current_versions else "warn",
            {"expected_head": EXPECTED_HEAD, "current": current_versions},
        )

        if "work_sessions" not in tables:
            return report

        multiple_active = conn.execute(
            text(
                """
                select employee_id, count(*)
                from work_sessions
                where status = 'ACTIVE'
                group by employee_id
                having count(*) > 1
                """
            )
        ).fetchall()
        add(
            "multiple_active_sessions",
            "fail" if multiple_active else "ok",
            {"rows": [list(row) for row in multiple_active]},
        )

        duration_mismatch = conn.execute(
            text(
                """
                select id
                from work_sessions
                where status = 'COMPLETED'
                  and (end_time is null or duration is null or duration <> end_time - start_time)
                limit 20
                """
            )
        ).fetchall()
        add(
            "completed_session_duration_mismatch",
            "fail" if duration_mismatch else "ok",
            {"sample_ids": [row[0] for row in duration_mismatch]},
        )

        orphan_sessions = conn.execute(
            text(
                """
                select s.id
                from work_sessions s
                left join employees e on e.id = s.employee_id
                where e.id is null
                limit 20
                """
            )
        ).fetchall()
        add(
            "session_orphan_employee",
            "fail" if orphan_sessions else "ok",
            {"sample_ids": [row[0] for row in orphan_sessions]},
        )

    return report


if __name__ == "__main__":
    print(json.dumps(run(), ensure_ascii=False, indent=2))
