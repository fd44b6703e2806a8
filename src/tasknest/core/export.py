# src/tasknest/core/export.py

from __future__ import annotations

"""
Snapshot export: {user, tasks, notifications, exportDate} as a JSON document.

This is the only interchange format tasknest defines.
"""

import contextlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from ..auth.user_models import User
from ..notifications.notification_models import Notification
from ..tasks.task_models import Task
from ..utils.datetime_helper import calendar_date, to_iso

logger = logging.getLogger(__name__)


def build_export(
    user: User | None,
    tasks: list[Task],
    notifications: list[Notification],
    *,
    now: datetime,
) -> dict[str, Any]:
    return {
        "user": user.to_dict() if user else None,
        "tasks": [t.to_dict() for t in tasks],
        "notifications": [n.to_dict() for n in notifications],
        "exportDate": to_iso(now),
    }


def export_filename(now: datetime) -> str:
    return f"tasknest-backup-{calendar_date(now).isoformat()}.json"


def write_export(snapshot: dict[str, Any], export_dir: str | Path, *, now: datetime) -> Path:
    """Write the snapshot atomically (tmp + replace) and return the final path."""
    out_dir = Path(export_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(now)

    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(Exception):
        # Export holds personal data; keep it private on disk.
        os.chmod(path, 0o600)

    logger.info("Exported %d tasks to %s", len(snapshot.get("tasks") or []), path)
    return path
