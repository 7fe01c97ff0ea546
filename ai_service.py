"""
AI service layer: turn a query result into an Indonesian answer.
build_result_summary gives deterministic text (no AI); generate_natural_response
asks OpenAI to phrase it and falls back to that text when AI is unavailable.
"""
import logging

from attendance_query import is_all_students

logger = logging.getLogger(__name__)

DETAIL_RECORD_LIMIT = 10

RESPONSE_SYSTEM_PROMPT = """Kamu adalah asisten AI sekolah yang ramah dan membantu. Tugasmu adalah menjawab pertanyaan orang tua mengenai absensi siswa berdasarkan data yang diberikan.
Berikan jawaban yang jelas, ringkas, dan mudah dimengerti dalam bahasa Indonesia.
- Sampaikan periode tanggal yang dicakup oleh responsmu dengan jelas.
- Jika data per tanggal lebih dari 10 entri untuk satu siswa, cukup berikan ringkasan jumlah hadir, absen, izin, kecuali pengguna meminta "rekap".
- Jika pengguna meminta "rekap" atau datanya sedikit (<=10 entri), tampilkan detail tanggalnya.
- Jika ada kesalahan atau data tidak ditemukan, sampaikan dengan sopan.
- Jika ada beberapa siswa yang cocok dengan nama yang diberikan (karena kelas tidak disebutkan), sebutkan data masing-masing siswa beserta kelasnya.
- Jangan menambah atau mengubah fakta dari data sistem."""


def _wants_detail(params, student_result):
    query_type = (params.get("queryType") or "").lower()
    return "rekap" in query_type or len(student_result["records"]) <= DETAIL_RECORD_LIMIT


def _student_block(student_result, params):
    lines = ["Siswa: %s (Kelas: %s)" % (student_result["studentName"], student_result["studentClass"])]
    records = student_result["records"]
    if not records:
        lines.append("- Tidak ada catatan absensi di periode ini.")
    elif _wants_detail(params, student_result):
        lines.extend("- Tanggal %s: %s" % (r["date"], r["status"]) for r in records)
    else:
        lines.append("- Terdapat %d catatan absensi pada periode ini." % len(records))
    summary = student_result["summary"]
    lines.append("Ringkasan: Hadir: %d kali, Absen: %d kali, Izin: %d kali." % (
        summary["totalPresent"], summary["totalAbsent"], summary["totalPermission"]))
    return "\n".join(lines)


def has_multiple_name_matches(result, params):
    """Several students matched a name query and no class was given."""
    name = params.get("studentName")
    data = result.get("data") or []
    if len(data) < 2 or is_all_students(name) or params.get("studentClass"):
        return False
    needle = name.strip().lower()
    return all(needle in (s.get("studentName") or "").lower() for s in data)


def build_result_summary(result, params):
    """Plain-text description of a query result for the response prompt (and offline fallback)."""
    period = result.get("periodDescription") or "tidak spesifik"
    data = result.get("data")

    if result.get("error"):
        return "Terjadi kesalahan: %s Periode yang dimaksud: %s." % (result["error"], period)

    if result.get("message") and (not data or all(not s["records"] for s in data)):
        text = "Informasi: %s Periode yang dimaksud: %s." % (result["message"], period)
        if data:
            checked = ", ".join("%s (Kelas %s)" % (s["studentName"], s["studentClass"]) for s in data)
            text += " Siswa yang diperiksa: %s." % checked
        return text

    if not data:
        text = "Tidak ditemukan data absensi yang relevan untuk permintaan Anda pada periode %s." % period
        name = params.get("studentName")
        if not is_all_students(name):
            text += ' Untuk siswa bernama "%s"' % name
            if params.get("studentClass"):
                text += ' kelas "%s"' % params["studentClass"]
            text += "."
        return text

    parts = ["Data absensi berhasil diambil.", "Periode: %s." % period]
    if has_multiple_name_matches(result, params):
        parts.append('Ditemukan beberapa siswa dengan nama "%s":' % params["studentName"])
    parts.append("Rincian:")
    parts.append("\n---\n".join(_student_block(s, params) for s in data))
    return "\n".join(parts)


def _params_line(params):
    period = params.get("timePeriod")
    period_type = period.get("type") if isinstance(period, dict) else None
    return "Parameter yang diekstrak: Nama: %s, Kelas: %s, Tipe Permintaan: %s, Jenis Periode: %s." % (
        params.get("studentName") or "Tidak spesifik",
        params.get("studentClass") or "Tidak spesifik",
        params.get("queryType") or "Tidak spesifik",
        period_type or "tidak diketahui",
    )


def generate_natural_response(question, result, params):
    """
    Phrase the result for the user with OpenAI. Without an API key, or if the call
    fails, return the deterministic summary so the answer still carries the facts.
    """
    from config import get_openai_api_key, OPENAI_MODEL, OPENAI_MAX_TOKENS, OPENAI_TEMPERATURE
    text = build_result_summary(result, params)
    api_key = get_openai_api_key()
    if not api_key:
        return text

    user_content = "Pertanyaan asli pengguna: \"%s\"\n%s\nData dari sistem:\n%s\n\nJawabanmu:" % (
        (question or "")[:1000], _params_line(params), text[:6000])
    try:
        from openai import OpenAI
        client = OpenAI(api_key=api_key)
        response = client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": RESPONSE_SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            max_tokens=OPENAI_MAX_TOKENS,
            temperature=OPENAI_TEMPERATURE,
        )
        reply = (response.choices[0].message.content or "").strip()
        if reply:
            return reply
    except Exception as e:
        logger.warning("ask: response generation OpenAI call failed: %s", e)
    return text
