"""
AI Intent Engine: interpret an Indonesian attendance question into query parameters.
Uses OpenAI (config.OPENAI_MODEL). Returns {"studentName", "studentClass", "timePeriod", "queryType"};
the period descriptor is validated later by periods.resolve_period.
"""
import re
import json
import logging
from datetime import timedelta

from periods import INDONESIAN_MONTH_NAMES, today_wib

logger = logging.getLogger(__name__)


class ParameterExtractionError(RuntimeError):
    """The model call failed or returned something that is not a parameter object."""


EXTRACTION_FAILED_MESSAGE = "Gagal memproses permintaan Anda dengan AI untuk ekstraksi parameter."

SYSTEM_PROMPT = """Kamu adalah asisten AI yang bertugas menganalisis permintaan pengguna terkait absensi siswa.
Tanggal hari ini adalah: {today} (format YYYY-MM-DD, zona waktu WIB).
Ekstrak informasi berikut dari permintaan pengguna dan kembalikan HANYA JSON, tanpa penjelasan.
Tulis nama bulan dengan huruf kapital di awal (contoh: "Mei", "April").
Jika tahun tidak disebutkan untuk bulan tertentu, gunakan tahun {year}, atau tahun lalu jika konteksnya "bulan lalu".

1. studentName: nama siswa (string). Jika tidak ada atau "semua siswa", isi null atau "semua".
2. studentClass: kelas siswa (string, misal "10A", "XI IPA 2"). Jika tidak disebutkan, null.
3. timePeriod: objek dengan salah satu bentuk:
   {{"type": "specific_date", "date": "YYYY-MM-DD"}}  (tanggal tertentu, "hari ini", "kemarin")
   {{"type": "last_days", "days": N}}  ("3 hari terakhir")
   {{"type": "current_week"}}  (minggu ini: Senin sampai hari ini)
   {{"type": "last_week"}}  (minggu lalu: Senin-Minggu penuh sebelum minggu berjalan)
   {{"type": "current_month"}}  (bulan ini)
   {{"type": "previous_month", "count": N}}  (N bulan lalu, N=1 untuk "bulan kemarin")
   {{"type": "specific_month", "month": "NamaBulan", "year": YYYY}}  ("bulan April 2025")
   {{"type": "current_year"}}  (tahun ini)
   {{"type": "previous_year", "count": N}}  (N tahun lalu, N=1 untuk "tahun kemarin")
   {{"type": "specific_year", "year": YYYY}}  ("tahun 2024")
4. queryType: jenis informasi (string, misal "rekap kehadiran", "jumlah hadir", "total absen", "jumlah izin", "apakah hadir").

Contoh:
- "Tolong rekap kehadiran Budi Santoso kelas 10A selama 3 hari terakhir."
  {{"studentName": "Budi Santoso", "studentClass": "10A", "timePeriod": {{"type": "last_days", "days": 3}}, "queryType": "rekap kehadiran"}}
- "Berapa kali Ani Lestari hadir bulan April 2025?"
  {{"studentName": "Ani Lestari", "studentClass": null, "timePeriod": {{"type": "specific_month", "month": "April", "year": 2025}}, "queryType": "jumlah hadir"}}
- "Bagaimana absensi semua siswa minggu lalu?"
  {{"studentName": "semua", "studentClass": null, "timePeriod": {{"type": "last_week"}}, "queryType": "rekap kehadiran"}}
- "Total absen Budi tahun ini."
  {{"studentName": "Budi", "studentClass": null, "timePeriod": {{"type": "current_year"}}, "queryType": "total absen"}}
- "Jumlah izin semua siswa tahun kemarin."
  {{"studentName": "semua", "studentClass": null, "timePeriod": {{"type": "previous_year", "count": 1}}, "queryType": "jumlah izin"}}
- "absensi budi hari ini"
  {{"studentName": "budi", "studentClass": null, "timePeriod": {{"type": "specific_date", "date": "{today}"}}, "queryType": "rekap kehadiran"}}"""


def build_system_prompt(today):
    return SYSTEM_PROMPT.format(today=today.isoformat(), year=today.year)


def interpret_question(question, known_names=None, today=None):
    """
    Call OpenAI to get the parameter JSON. Without an API key, falls back to the
    rule-based parser. Raises ParameterExtractionError when the model call fails.
    """
    from config import get_openai_api_key, OPENAI_MODEL
    today = today or today_wib()
    q = (question or "").strip()[:2000]

    api_key = get_openai_api_key()
    if not api_key:
        logger.info("ask: no OPENAI_API_KEY, using rule-based fallback for parameters")
        return rule_based_params(q, known_names, today)

    try:
        from openai import OpenAI
        client = OpenAI(api_key=api_key)
        response = client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[
                {"role": "system", "content": build_system_prompt(today)},
                {"role": "user", "content": "Permintaan Pengguna: \"%s\"\nOutput JSON:" % q},
            ],
            temperature=0.1,
            max_tokens=300,
        )
        text = (response.choices[0].message.content or "").strip()
    except Exception as e:
        logger.error("ask: parameter extraction OpenAI call failed: %s", e)
        raise ParameterExtractionError(EXTRACTION_FAILED_MESSAGE) from e

    parsed = parse_params_json(text)
    if parsed is None:
        logger.error("ask: could not parse parameters from model output: %r", text[:500])
        raise ParameterExtractionError(EXTRACTION_FAILED_MESSAGE)
    logger.info("ask: extracted params=%s", parsed)
    return parsed


def _optional_str(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_params_json(text):
    """Extract the parameter object from model output (code fences allowed). Returns dict or None."""
    if not text:
        return None
    text = re.sub(r"```(?:json)?", "", text.strip())
    m = re.search(r"\{[\s\S]*\}", text)
    if not m:
        return None
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    period = data.get("timePeriod")
    if isinstance(period, dict) and isinstance(period.get("type"), str):
        period = dict(period, type=period["type"].strip().lower())
    return {
        "studentName": _optional_str(data.get("studentName")),
        "studentClass": _optional_str(data.get("studentClass")),
        "timePeriod": period,
        "queryType": _optional_str(data.get("queryType")),
    }


# ---------------------------------------------------------------------------
# Rule-based fallback (no API key)
# ---------------------------------------------------------------------------

_MONTH_NUMBERS = {name.lower(): i for i, name in enumerate(INDONESIAN_MONTH_NAMES, 1)}
_MONTHS_RE = "|".join(_MONTH_NUMBERS)
_WORD_NUMBERS = {"satu": 1, "dua": 2, "tiga": 3, "empat": 4, "lima": 5, "enam": 6, "tujuh": 7}


def _count(token, default=1):
    if not token:
        return default
    token = token.strip().lower()
    if token.isdigit():
        return int(token)
    return _WORD_NUMBERS.get(token, default)


def _extract_class(question):
    """Class after the word "kelas": "kelas 10A", "kelas XI IPA 2"."""
    m = re.search(r"\bkelas\s+([0-9]{1,2}\s?[A-Za-z]?\d?|[XVI]{1,4}(?:\s+(?:IPA|IPS|MIPA|BAHASA)(?:\s*\d+)?)?)\b", question, re.I)
    return m.group(1).strip().upper() if m else None


def _extract_name(q_lower, known_names):
    """Longest known full name in the question, else the first known first name."""
    if re.search(r"\bsemua\b", q_lower):
        return "semua"
    names = sorted({n.strip() for n in (known_names or []) if isinstance(n, str) and n.strip()}, key=lambda n: (-len(n), n))
    for name in names:
        if re.search(r"\b%s\b" % re.escape(name.lower()), q_lower):
            return name
    for name in names:
        first = name.split()[0]
        if len(first) > 2 and re.search(r"\b%s\b" % re.escape(first.lower()), q_lower):
            return first
    return None


def _extract_period(q, today):
    m = re.search(r"\b(\d+|satu|dua|tiga|empat|lima|enam|tujuh)\s+hari\s+terakhir\b", q)
    if m:
        return {"type": "last_days", "days": _count(m.group(1))}
    if "minggu ini" in q or "pekan ini" in q:
        return {"type": "current_week"}
    if re.search(r"\b(minggu|pekan)\s+(lalu|kemarin)\b", q):
        return {"type": "last_week"}
    if "bulan ini" in q:
        return {"type": "current_month"}
    m = re.search(r"\b(\d+|satu|dua|tiga|empat|lima|enam)\s+bulan\s+(?:yang\s+)?lalu\b", q)
    if m:
        return {"type": "previous_month", "count": _count(m.group(1))}
    if re.search(r"\bbulan\s+(lalu|kemarin)\b", q):
        return {"type": "previous_month", "count": 1}
    if "tahun ini" in q:
        return {"type": "current_year"}
    m = re.search(r"\b(\d+|satu|dua|tiga|empat|lima)\s+tahun\s+(?:yang\s+)?lalu\b", q)
    if m:
        return {"type": "previous_year", "count": _count(m.group(1))}
    if re.search(r"\btahun\s+(lalu|kemarin)\b", q):
        return {"type": "previous_year", "count": 1}
    m = re.search(r"\b(\d{4}-\d{1,2}-\d{1,2})\b", q)
    if m:
        y, mo, d = (int(p) for p in m.group(1).split("-"))
        return {"type": "specific_date", "date": "%04d-%02d-%02d" % (y, mo, d)}
    m = re.search(r"\b(\d{1,2})\s+(%s)(?:\s+(\d{4}))?\b" % _MONTHS_RE, q)
    if m:
        year = int(m.group(3)) if m.group(3) else today.year
        return {"type": "specific_date", "date": "%04d-%02d-%02d" % (year, _MONTH_NUMBERS[m.group(2)], int(m.group(1)))}
    m = re.search(r"\b(%s)(?:\s+(\d{4}))?\b" % _MONTHS_RE, q)
    if m:
        month = INDONESIAN_MONTH_NAMES[_MONTH_NUMBERS[m.group(1)] - 1]
        return {"type": "specific_month", "month": month, "year": int(m.group(2)) if m.group(2) else today.year}
    m = re.search(r"\btahun\s+(\d{4})\b", q)
    if m:
        return {"type": "specific_year", "year": int(m.group(1))}
    if re.search(r"\bkemarin\b", q):
        return {"type": "specific_date", "date": (today - timedelta(days=1)).isoformat()}
    return {"type": "specific_date", "date": today.isoformat()}


def _extract_query_type(q):
    if "rekap" in q:
        return "rekap kehadiran"
    if "izin" in q:
        return "jumlah izin"
    if "absen" in q and ("total" in q or "berapa" in q or "jumlah" in q):
        return "total absen"
    if "hadir" in q and ("berapa" in q or "jumlah" in q):
        return "jumlah hadir"
    if q.startswith("apakah") or "masuk" in q:
        return "apakah hadir"
    return "rekap kehadiran"


def rule_based_params(question, known_names=None, today=None):
    """Fallback when OpenAI is not available: parameters from Indonesian keywords."""
    today = today or today_wib()
    q = (question or "").strip().lower()
    params = {
        "studentName": _extract_name(q, known_names),
        "studentClass": _extract_class(question or ""),
        "timePeriod": _extract_period(q, today),
        "queryType": _extract_query_type(q),
    }
    logger.info("ask: rule-based params=%s", params)
    return params
