# ckd_app/notifications.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from typing import Optional
import os, smtplib, ssl, socket
from email.message import EmailMessage
from datetime import datetime, timezone
import logging

from . import config
from .db import get_db
from .gcua.engine import format_summary
from .gcua_store import latest_assessment

router = APIRouter(prefix="/notifications", tags=["notifications"])
log = logging.getLogger("uvicorn.error")


def _config_complete() -> bool:
    return bool(config.SMTP_HOST and config.SMTP_PORT and config.SMTP_USER and config.SMTP_PASS and config.SMTP_FROM)


def _smtp_connect_and_auth():
    """
    Connect and authenticate; returns an smtplib SMTP/SMTP_SSL instance.
    Supports STARTTLS on 587 and SMTPS on 465.
    """
    if not _config_complete():
        raise RuntimeError("CONFIG_MISSING: Set SMTP_HOST/PORT/USER/PASS/FROM.")

    context = ssl.create_default_context()
    if config.SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, timeout=config.SMTP_TIMEOUT, context=context)
    else:
        server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=config.SMTP_TIMEOUT)
        server.ehlo()
        server.starttls(context=context)
    server.ehlo()
    server.login(config.SMTP_USER, config.SMTP_PASS)
    return server


def send_email(to_email: str, subject: str, text: str) -> None:
    # Dev "file outbox" so the dashboard keeps working without SMTP
    if config.DEV_MAIL_DIR:
        os.makedirs(config.DEV_MAIL_DIR, exist_ok=True)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        fn = os.path.join(config.DEV_MAIL_DIR, f"{ts}-{to_email}.eml")
        with open(fn, "w", encoding="utf-8") as f:
            f.write(f"From: {config.SMTP_FROM or '<unset>'}\nTo: {to_email}\nSubject: {subject}\n\n{text}\n")
        return

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.SMTP_FROM
    msg["To"] = to_email
    msg.set_content(text or "")

    server = None
    try:
        server = _smtp_connect_and_auth()
        server.send_message(msg)
    except smtplib.SMTPAuthenticationError as e:
        raise RuntimeError(f"AUTH_FAILED: {e}")
    except (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError, socket.timeout, OSError) as e:
        raise RuntimeError(f"NETWORK_ERROR: {e}")
    finally:
        if server is not None:
            try:
                server.quit()
            except smtplib.SMTPException:
                pass


def gcua_email_text(summary: str, kdigo: Optional[str], assessed_at: Optional[datetime]) -> str:
    when = assessed_at.strftime("%Y-%m-%d %H:%M") if assessed_at else "(unknown)"
    lines = [
        "Hello,",
        "",
        "Latest geriatric cardiorenal (GCUA) assessment:",
        f"• {summary}",
    ]
    if kdigo:
        lines.append(f"• {kdigo}")
    lines += [
        "",
        f"Assessed on: {when}",
        "",
        "This screening supports, and does not replace, clinical judgment.",
        f"- {config.APP_NAME}",
    ]
    return "\n".join(lines) + "\n"


# -----------------------------
# Schemas
# -----------------------------
class SendGCUASummaryIn(BaseModel):
    email: EmailStr
    patient_id: int


# -----------------------------
# Routes
# -----------------------------
@router.get("/diag")
def notifications_diag():
    """
    Non-destructive health check: verifies config and attempts SMTP connect+auth.
    Does NOT send an email.
    """
    status = "OK"
    detail = ""
    try:
        if not _config_complete():
            raise RuntimeError("CONFIG_MISSING")
        srv = _smtp_connect_and_auth()
        try:
            srv.noop()
        finally:
            srv.quit()
    except Exception as e:
        status = "ERROR"
        detail = str(e)
        log.error("notifications/diag: %s", detail)

    return {
        "status": status,                 # OK or ERROR
        "detail": detail,                 # CONFIG_MISSING / AUTH_FAILED / NETWORK_ERROR / ...
        "host": config.SMTP_HOST, "port": config.SMTP_PORT,
        "user_set": bool(config.SMTP_USER),
        "pass_set": bool(config.SMTP_PASS),
        "from_set": bool(config.SMTP_FROM),
        "dev_outbox": bool(config.DEV_MAIL_DIR),
        "app_name": config.APP_NAME,
    }


@router.post("/send-gcua-summary")
def send_gcua_summary(body: SendGCUASummaryIn, db: Session = Depends(get_db)):
    rec = latest_assessment(db, body.patient_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="No GCUA assessment for this patient.")

    if rec.is_eligible:
        summary = format_summary(
            rec.phenotype_type, rec.phenotype_name,
            rec.module1_five_year_risk, rec.module2_ten_year_risk, rec.module3_five_year_mortality,
        )
    else:
        summary = rec.eligibility_reason or "Not eligible for GCUA"

    subject = f"{config.APP_NAME}: GCUA Cardiorenal Risk Summary"
    text = gcua_email_text(summary, rec.kdigo_screening_recommendation, rec.assessed_at)
    try:
        send_email(body.email, subject, text)
    except Exception as e:
        log.exception("send-gcua-summary failed")
        raise HTTPException(status_code=502, detail=f"{e}")
    return {"ok": True, "summary": summary}
