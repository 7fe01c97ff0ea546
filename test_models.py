import json
import os

from models import JsonAttendanceStore, ledger_month, record_day

SAMPLE_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "students.json")


def _write(tmp_path, content):
    path = tmp_path / "students.json"
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_load_sample_store():
    students = JsonAttendanceStore(SAMPLE_PATH).students()
    assert any(s["name"] == "Budi Santoso" and s["class"] == "10A" for s in students)


def test_load_valid_document(tmp_path):
    doc = {"students": [{"id": 1, "name": "Ani", "class": "10A", "attendance": {}}]}
    store = JsonAttendanceStore(_write(tmp_path, json.dumps(doc)))
    assert store.load() == doc
    assert [s["name"] for s in store.students()] == ["Ani"]


def test_missing_file_degrades_to_empty(tmp_path):
    assert JsonAttendanceStore(str(tmp_path / "nope.json")).load() == {"students": []}


def test_corrupt_json_degrades_to_empty(tmp_path):
    assert JsonAttendanceStore(_write(tmp_path, "{not json")).load() == {"students": []}


def test_wrong_shape_degrades_to_empty(tmp_path):
    assert JsonAttendanceStore(_write(tmp_path, "[1, 2]")).load() == {"students": []}
    assert JsonAttendanceStore(_write(tmp_path, '{"students": {}}')).load() == {"students": []}


def test_malformed_entries_are_skipped(tmp_path):
    doc = {"students": [{"id": 1, "name": "Ani", "class": "10A"}, "oops", None]}
    students = JsonAttendanceStore(_write(tmp_path, json.dumps(doc))).students()
    assert [s["name"] for s in students] == ["Ani"]


def test_store_rereads_file(tmp_path):
    path = _write(tmp_path, '{"students": []}')
    store = JsonAttendanceStore(path)
    assert store.students() == []
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"students": [{"id": 1, "name": "Budi", "class": "10A"}]}, f)
    assert [s["name"] for s in store.students()] == ["Budi"]


def test_ledger_month_lookup():
    student = {"attendance": {"2025": {"05": [{"day": 1, "status": "Hadir"}]}}}
    assert ledger_month(student, 2025, 5) == [{"day": 1, "status": "Hadir"}]
    assert ledger_month(student, 2025, 6) == []
    assert ledger_month(student, 2024, 5) == []
    assert ledger_month({}, 2025, 5) == []
    assert ledger_month({"attendance": {"2025": []}}, 2025, 5) == []


def test_record_day():
    assert record_day({"day": 5}) == 5
    assert record_day({"day": "07"}) == 7
    assert record_day({"day": True}) is None
    assert record_day({"status": "Hadir"}) is None
    assert record_day("5") is None


def test_record_day_rejects_non_ascii_digits():
    assert record_day({"day": "²"}) is None
    assert record_day({"day": "½"}) is None
    assert record_day({"day": " 12 "}) == 12
