"""
Attendance store — data layer.
Read-only JSON document: {"students": [{"id", "name", "class", "attendance": {year: {month: [{day, status}]}}}]}.
Read failures degrade to an empty student list; callers never see an exception.
"""
import json
import logging

logger = logging.getLogger(__name__)


def empty_store():
    return {"students": []}


class JsonAttendanceStore:
    """Loads the attendance document from `path` on every call to load()."""

    def __init__(self, path):
        self.path = path

    def load(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.error("store: file not found: %s", self.path)
            return empty_store()
        except (OSError, ValueError) as e:
            logger.error("store: failed to read %s: %s", self.path, e)
            return empty_store()
        if not isinstance(data, dict) or not isinstance(data.get("students"), list):
            logger.warning("store: %s has no 'students' list, treating as empty", self.path)
            return empty_store()
        students = [s for s in data["students"] if isinstance(s, dict)]
        if len(students) != len(data["students"]):
            logger.warning("store: skipped %d malformed student entries", len(data["students"]) - len(students))
        return {"students": students}

    def students(self):
        return self.load()["students"]


# ---------------------------------------------------------------------------
# Ledger access
# ---------------------------------------------------------------------------

def ledger_month(student, year, month):
    """Day records for (year, month) or [] when the ledger has no such key."""
    attendance = student.get("attendance")
    if not isinstance(attendance, dict):
        return []
    months = attendance.get(str(year))
    if not isinstance(months, dict):
        return []
    records = months.get("%02d" % month)
    return records if isinstance(records, list) else []


def record_day(record):
    """Day-of-month of a ledger entry, or None if it has no usable day."""
    if not isinstance(record, dict):
        return None
    day = record.get("day")
    if isinstance(day, bool):
        return None
    if isinstance(day, int):
        return day
    if isinstance(day, str) and day.strip().isdecimal():
        try:
            return int(day)
        except ValueError:
            return None
    return None
