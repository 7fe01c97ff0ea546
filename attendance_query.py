"""
Attendance query engine: match students, walk their ledgers over a resolved
period and summarise. Pure functions over in-memory data; no I/O, no globals.

Result shapes (consumed by ai_service):
  {"error": str, "periodDescription": str}
  {"message": str, "periodDescription": str, "data": [StudentResult, ...]}
  {"data": [StudentResult, ...], "periodDescription": str}
"""
from datetime import timedelta

from models import ledger_month, record_day
from periods import resolve_period

ALL_STUDENTS = frozenset({"semua", "semua siswa"})

STATUS_PRESENT = "hadir"
STATUS_ABSENT = "absen"
STATUS_PERMISSION = "izin"


def is_all_students(name):
    return name is None or not str(name).strip() or str(name).strip().lower() in ALL_STUDENTS


def _lower(value):
    return str(value if value is not None else "").strip().lower()


def match_students(students, name=None, student_class=None):
    """
    Resolve name/class against the store. Name is a case-insensitive substring
    match; class is exact (case-insensitive) and applies even when name is "semua".
    Returns (students, None) or ([], not_found_message).
    """
    all_students = is_all_students(name)
    has_class = student_class is not None and str(student_class).strip() != ""

    if all_students:
        candidates = list(students)
    else:
        needle = _lower(name)
        candidates = [s for s in students if needle in _lower(s.get("name"))]

    if has_class:
        wanted = _lower(student_class)
        by_class = [s for s in candidates if _lower(s.get("class")) == wanted]
        if not by_class and candidates and not all_students:
            return [], (
                'Siswa dengan nama "%s" di kelas "%s" tidak ditemukan. '
                "Mungkin periksa kembali nama dan kelas." % (name, student_class)
            )
        candidates = by_class

    if not candidates:
        message = "Siswa"
        if not all_students:
            message += ' dengan nama "%s"' % name
        if has_class:
            message += ' di kelas "%s"' % student_class
        return [], message + " tidak ditemukan."
    return candidates, None


def iter_days(start, end):
    day = start
    while day <= end:
        yield day
        if day == end:
            break
        day += timedelta(days=1)


def summarize_records(records):
    counts = {STATUS_PRESENT: 0, STATUS_ABSENT: 0, STATUS_PERMISSION: 0}
    for r in records:
        status = _lower(r.get("status"))
        if status in counts:
            counts[status] += 1
    return {
        "totalPresent": counts[STATUS_PRESENT],
        "totalAbsent": counts[STATUS_ABSENT],
        "totalPermission": counts[STATUS_PERMISSION],
        "totalRecords": len(records),
    }


def aggregate_student(student, period):
    """Collect the student's records for every day of period (inclusive) and summarise."""
    records = []
    month_cache = {}
    for day in iter_days(period["start"], period["end"]):
        key = (day.year, day.month)
        if key not in month_cache:
            by_day = {}
            for entry in ledger_month(student, day.year, day.month):
                d = record_day(entry)
                if d is not None and d not in by_day:
                    by_day[d] = entry
            month_cache[key] = by_day
        entry = month_cache[key].get(day.day)
        if entry is not None:
            records.append({"date": day.isoformat(), "status": entry.get("status")})
    return {
        "studentId": student.get("id"),
        "studentName": student.get("name"),
        "studentClass": student.get("class"),
        "records": records,
        "summary": summarize_records(records),
    }


def get_attendance_data(students, student_name, student_class, time_period, reference_date):
    """
    Full query: resolve period, match students, aggregate. Period errors
    (periods.PeriodError) propagate; not-found and empty periods are returned as values.
    """
    period = resolve_period(time_period, reference_date)
    description = period["description"]

    matched, error = match_students(students, student_name, student_class)
    if error:
        return {"error": error, "periodDescription": description}

    data = [aggregate_student(s, period) for s in matched]
    if all(not s["records"] for s in data):
        for_whom = "semua siswa"
        if not is_all_students(student_name):
            for_whom = "siswa %s" % student_name
            if student_class:
                for_whom += " kelas %s" % student_class
        elif student_class:
            for_whom = "semua siswa kelas %s" % student_class
        return {
            "message": "Tidak ada data absensi untuk periode %s bagi %s." % (description, for_whom),
            "periodDescription": description,
            "data": data,
        }
    return {"data": data, "periodDescription": description}
