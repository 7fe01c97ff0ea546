"""
Attendance question service (Indonesian). POST /ask-gemini with {"query": "..."}.
"""
import logging

# Structured logging for ask and routes
logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

from flask import Flask

from config import ATTENDANCE_DB_PATH, PORT, SECRET_KEY, get_openai_api_key
from models import JsonAttendanceStore
from periods import today_wib
from routes.main import bp as main_bp


def create_app(store=None, **overrides):
    """Build the app. `store` is any object with students(); defaults to the JSON store from config."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = SECRET_KEY
    app.config["ATTENDANCE_STORE"] = store or JsonAttendanceStore(ATTENDANCE_DB_PATH)
    app.config.update(overrides)
    app.json.sort_keys = False
    app.register_blueprint(main_bp)
    return app


if __name__ == "__main__":
    if get_openai_api_key():
        print("KEY LOADED: True  (OpenAI enabled)")
    else:
        print("KEY LOADED: False (rule-based parameters, plain-text answers). Set OPENAI_API_KEY=sk-... in .env")
    app = create_app()
    print(f"Server berjalan di http://localhost:{PORT}")
    print(f"Tanggal referensi server (WIB): {today_wib().isoformat()}")
    print(f'Contoh request: POST http://localhost:{PORT}/ask-gemini dengan body JSON {{"query": "rekap kehadiran Budi Santoso kelas 10A tahun ini"}}')
    app.run(host="0.0.0.0", port=PORT, debug=True)
