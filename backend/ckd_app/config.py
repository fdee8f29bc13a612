# ckd_app/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=ENV_PATH)

APP_NAME = os.getenv("APP_NAME", "CKD Dashboard")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ckd_dashboard.db")

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

# E-mail delivery for GCUA summaries
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASS = os.getenv("SMTP_PASS", "")
SMTP_FROM = os.getenv("SMTP_FROM", SMTP_USER)
SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "12"))
DEV_MAIL_DIR = os.getenv("DEV_MAIL_DIR", "")      # optional local file outbox
