from types import SimpleNamespace

import openai

import config
from ai_service import build_result_summary, generate_natural_response, has_multiple_name_matches


def _student(name, klass, records):
    summary = {
        "totalPresent": sum(1 for r in records if r["status"].lower() == "hadir"),
        "totalAbsent": sum(1 for r in records if r["status"].lower() == "absen"),
        "totalPermission": sum(1 for r in records if r["status"].lower() == "izin"),
        "totalRecords": len(records),
    }
    return {"studentId": name, "studentName": name, "studentClass": klass, "records": records, "summary": summary}


def _records(n, status="Hadir"):
    return [{"date": "2025-05-%02d" % (i + 1), "status": status} for i in range(n)]


PARAMS = {"studentName": "Budi", "studentClass": None, "timePeriod": {"type": "current_month"}, "queryType": "jumlah hadir"}


def test_error_branch():
    text = build_result_summary({"error": 'Siswa dengan nama "Zaki" tidak ditemukan.', "periodDescription": "2025-05-01 hingga 2025-05-31"}, PARAMS)
    assert text == 'Terjadi kesalahan: Siswa dengan nama "Zaki" tidak ditemukan. Periode yang dimaksud: 2025-05-01 hingga 2025-05-31.'


def test_message_branch_lists_checked_students():
    result = {
        "message": "Tidak ada data absensi untuk periode 2025-05-16 hingga 2025-05-16 bagi siswa Budi.",
        "periodDescription": "2025-05-16 hingga 2025-05-16",
        "data": [_student("Budi Santoso", "10A", [])],
    }
    text = build_result_summary(result, PARAMS)
    assert text.startswith("Informasi: Tidak ada data absensi")
    assert "Siswa yang diperiksa: Budi Santoso (Kelas 10A)." in text


def test_empty_data_branch_names_query():
    text = build_result_summary({"data": [], "periodDescription": "2025-05-16 hingga 2025-05-16"},
                                dict(PARAMS, studentClass="10A"))
    assert 'Untuk siswa bernama "Budi" kelas "10A".' in text


def test_data_branch_details_for_short_lists():
    result = {"data": [_student("Budi Santoso", "10A", _records(3))], "periodDescription": "2025-05-01 hingga 2025-05-31"}
    text = build_result_summary(result, PARAMS)
    assert "Periode: 2025-05-01 hingga 2025-05-31." in text
    assert "Siswa: Budi Santoso (Kelas: 10A)" in text
    assert "- Tanggal 2025-05-03: Hadir" in text
    assert "Ringkasan: Hadir: 3 kali, Absen: 0 kali, Izin: 0 kali." in text


def test_data_branch_counts_only_for_long_lists():
    result = {"data": [_student("Budi Santoso", "10A", _records(12))], "periodDescription": "2025-05-01 hingga 2025-05-31"}
    text = build_result_summary(result, PARAMS)
    assert "- Terdapat 12 catatan absensi pada periode ini." in text
    assert "Tanggal 2025-05-01" not in text


def test_rekap_always_shows_details():
    result = {"data": [_student("Budi Santoso", "10A", _records(12))], "periodDescription": "2025-05-01 hingga 2025-05-31"}
    text = build_result_summary(result, dict(PARAMS, queryType="Rekap kehadiran"))
    assert "- Tanggal 2025-05-12: Hadir" in text


def test_multiple_name_matches_announced():
    result = {
        "data": [_student("Budi Santoso", "10A", _records(1)), _student("Budi Hartono", "11B", [])],
        "periodDescription": "2025-05-01 hingga 2025-05-31",
    }
    assert has_multiple_name_matches(result, PARAMS)
    assert 'Ditemukan beberapa siswa dengan nama "Budi":' in build_result_summary(result, PARAMS)
    assert not has_multiple_name_matches(result, dict(PARAMS, studentName="semua"))
    assert not has_multiple_name_matches(result, dict(PARAMS, studentClass="10A"))


def test_offline_response_is_summary():
    result = {"error": "Siswa tidak ditemukan.", "periodDescription": "2025-05-01 hingga 2025-05-31"}
    assert generate_natural_response("absen zaki", result, PARAMS) == build_result_summary(result, PARAMS)


def _client(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_model_response_used(monkeypatch):
    seen = {}

    def create(**kwargs):
        seen.update(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="Budi hadir 3 kali."))])

    monkeypatch.setattr(config, "get_openai_api_key", lambda: "sk-test")
    monkeypatch.setattr(openai, "OpenAI", lambda api_key: _client(create))
    result = {"data": [_student("Budi Santoso", "10A", _records(3))], "periodDescription": "2025-05-01 hingga 2025-05-31"}
    assert generate_natural_response("berapa kali budi hadir bulan ini", result, PARAMS) == "Budi hadir 3 kali."
    user_message = seen["messages"][1]["content"]
    assert 'Pertanyaan asli pengguna: "berapa kali budi hadir bulan ini"' in user_message
    assert "Jenis Periode: current_month" in user_message


def test_model_failure_falls_back_to_summary(monkeypatch):
    def create(**kwargs):
        raise RuntimeError("quota")

    monkeypatch.setattr(config, "get_openai_api_key", lambda: "sk-test")
    monkeypatch.setattr(openai, "OpenAI", lambda api_key: _client(create))
    result = {"error": "Siswa tidak ditemukan.", "periodDescription": "2025-05-01 hingga 2025-05-31"}
    assert generate_natural_response("absen zaki", result, PARAMS) == build_result_summary(result, PARAMS)
