"""
Attendance assistant routes. POST /ask-gemini answers an Indonesian question
(parameter extraction -> attendance query -> AI phrasing); POST /api/attendance/query
runs the attendance query directly on structured parameters.
"""
import logging
import threading
import time

from flask import Blueprint, current_app, jsonify, request

from ai_intent_engine import ParameterExtractionError, interpret_question
from ai_service import generate_natural_response
from attendance_query import get_attendance_data
from config import CHAT_DAILY_CAP, CHAT_RATE_LIMIT_PER_MINUTE
from periods import PeriodError, parse_iso_date, today_wib

logger = logging.getLogger(__name__)


bp = Blueprint("main", __name__)


def _store():
    return current_app.config["ATTENDANCE_STORE"]


def _json_body():
    """Request JSON as a dict; anything else (missing, list, scalar) is treated as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Ask (AI)
# ---------------------------------------------------------------------------

_ask_request_times = {}  # ip -> list of timestamps
_ask_request_lock = threading.Lock()


def _rate_limit_exceeded(ip):
    """Return True if this IP would exceed per-minute or daily cap."""
    now = time.time()
    one_min_ago = now - 60
    one_day_ago = now - 86400
    with _ask_request_lock:
        for key in [k for k, v in _ask_request_times.items() if not v or v[-1] <= one_day_ago]:
            del _ask_request_times[key]
        times = [t for t in _ask_request_times.get(ip, []) if t > one_day_ago]
        per_min = sum(1 for t in times if t > one_min_ago)
        if per_min >= CHAT_RATE_LIMIT_PER_MINUTE or (CHAT_DAILY_CAP and len(times) >= CHAT_DAILY_CAP):
            if times:
                _ask_request_times[ip] = times
            return True
        times.append(now)
        _ask_request_times[ip] = times
        return False


def _sanitize_question(q):
    """Sanitize user input: strip, length limit, no control chars."""
    if not q or not isinstance(q, str):
        return ""
    q = "".join(c for c in q.strip() if c.isprintable() or c in "\n\r\t")[:1000]
    return q.strip()


@bp.route("/ask-gemini", methods=["POST"])
def ask():
    data = _json_body()
    query = _sanitize_question(data.get("query"))
    if not query:
        return jsonify({"error": "Query tidak boleh kosong."}), 400

    ip = request.remote_addr or "0.0.0.0"
    if current_app.config.get("RATE_LIMIT_ENABLED", True) and _rate_limit_exceeded(ip):
        logger.warning("ask: rate limit exceeded for IP %s", ip)
        return jsonify({"error": "Batas penggunaan AI tercapai. Silakan coba lagi nanti."}), 429

    store = _store()
    try:
        students = store.students()
        today = today_wib()
        params = interpret_question(query, known_names=[s.get("name") for s in students], today=today)
        logger.info("ask: parameters extracted: %s", params)
        result = get_attendance_data(
            students, params.get("studentName"), params.get("studentClass"), params.get("timePeriod"), today
        )
        answer = generate_natural_response(query, result, params)
    except (PeriodError, ParameterExtractionError) as e:
        logger.warning("ask: query rejected: %s", e)
        return jsonify({"error": str(e)}), 500
    except Exception:
        logger.exception("ask: unhandled error")
        return jsonify({"error": "Terjadi kesalahan pada server."}), 500

    return jsonify({"userQuery": query, "extractedParameters": params, "aiResponse": answer})


# ---------------------------------------------------------------------------
# Structured query (no AI)
# ---------------------------------------------------------------------------

@bp.route("/api/attendance/query", methods=["POST"])
def api_attendance_query():
    data = _json_body()
    try:
        reference = data.get("referenceDate")
        today = parse_iso_date(reference) if reference else today_wib()
        result = get_attendance_data(
            _store().students(), data.get("studentName"), data.get("studentClass"), data.get("timePeriod"), today
        )
    except PeriodError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result)
