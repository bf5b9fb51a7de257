"""Email utility — sends verification codes via SMTP (TLS)."""
from __future__ import annotations

import logging
import smtplib
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


def _build_smtp_connection() -> smtplib.SMTP:
    """Open an authenticated SMTP TLS connection."""
    conn = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS)
    conn.ehlo()
    conn.starttls()
    conn.ehlo()
    conn.login(settings.SMTP_USER, settings.SMTP_PASS)
    return conn


def send_email(to: str, subject: str, html_body: str, plain_body: str = "") -> bool:
    """
    Send a transactional email. Returns True on success, False on failure.
    """
    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"AGRINVEST <{settings.EMAIL_FROM}>"
        msg["To"] = to

        if plain_body:
            msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with _build_smtp_connection() as conn:
            conn.sendmail(settings.EMAIL_FROM, [to], msg.as_string())

        logger.info(f"[Email] Sent '{subject}' → {to}")
        return True

    except (smtplib.SMTPException, OSError) as exc:
        logger.error(f"[Email] Failed to send '{subject}' to {to}: {exc}")
        return False


def save_to_outbox(kind: str, to: str, code: str, sent: bool, outbox_dir: Optional[str] = None) -> Optional[Path]:
    """
    Development only: keep a plain-text copy of a code email so codes can be
    read without a working mailbox. Returns the file path, or None in
    production or when the copy could not be written.
    """
    if settings.is_production:
        return None

    now = datetime.now(timezone.utc)
    directory = Path(outbox_dir or settings.EMAIL_OUTBOX_DIR)
    path = directory / f"{kind}-code-{now.strftime('%Y%m%dT%H%M%S%f')}.txt"
    content = (
        "========================================\n"
        f"{kind.replace('-', ' ').upper()} CODE\n"
        "========================================\n"
        f"To: {to}\n"
        f"Date: {now.strftime('%Y-%m-%d %H:%M:%S UTC')}\n"
        f"Email sent: {'YES' if sent else 'NO'}\n"
        "========================================\n"
        f"CODE: {code}\n"
        "========================================\n"
        f"Valid for {settings.OTP_EXPIRE_MINUTES} minutes.\n"
    )
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.warning(f"[Email] Could not write outbox copy for {to}: {exc}")
        return None
    return path


# ── Code senders ──────────────────────────────────────────────────────────────

_CODE_EMAIL = """
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; background: #f4f4f4; margin: 0; padding: 0; }}
    .container {{ max-width: 560px; margin: 40px auto; background: #fff;
                  border-radius: 8px; padding: 32px; box-shadow: 0 2px 8px rgba(0,0,0,.1); }}
    .logo {{ font-size: 24px; font-weight: 700; color: #003F28; margin-bottom: 8px; }}
    .code {{ font-size: 32px; font-weight: 800; letter-spacing: 8px; color: #003F28;
             background: #e8f5e8; border: 2px solid #00BC6E; padding: 16px 24px;
             border-radius: 8px; display: inline-block; margin: 16px 0; font-family: monospace; }}
    .footer {{ margin-top: 24px; font-size: 12px; color: #666; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="logo">AGRINVEST</div>
    <p>Investment club</p>
    <h2>{title}</h2>
    <p>{intro}</p>
    <div class="code">{code}</div>
    <ul>
      <li>This code is valid for <strong>{minutes} minutes</strong>.</li>
      <li>Do not share this code with anyone.</li>
    </ul>
    <p>{ignore}</p>
    <div class="footer">
      &copy; {year} AGRINVEST &nbsp;|&nbsp; This is an automated message, please do not reply.
    </div>
  </div>
</body>
</html>
"""


def _send_code(kind: str, to: str, code: str, subject: str, title: str, intro: str, ignore: str) -> bool:
    minutes = settings.OTP_EXPIRE_MINUTES
    html_body = _CODE_EMAIL.format(
        title=title,
        intro=intro,
        code=code,
        minutes=minutes,
        ignore=ignore,
        year=datetime.now(timezone.utc).year,
    )
    plain_body = f"{intro}\n\nYour code: {code}\n\nValid for {minutes} minutes.\n\n{ignore}"
    sent = send_email(to, subject, html_body, plain_body)
    save_to_outbox(kind, to, code, sent)
    return sent


def send_password_reset_code(to: str, code: str) -> bool:
    """Send a password reset code."""
    return _send_code(
        "password-reset",
        to,
        code,
        subject="AGRINVEST — Password reset code",
        title="Password reset code",
        intro="You asked to reset your AGRINVEST password. Use the code below to continue.",
        ignore="If you did not ask for a password reset, you can safely ignore this email.",
    )


def send_verification_code(to: str, code: str) -> bool:
    """Send an email confirmation code."""
    return _send_code(
        "email-verification",
        to,
        code,
        subject="AGRINVEST — Confirm your email",
        title="Confirm your email",
        intro="Welcome to AGRINVEST. Enter the code below to confirm your email address.",
        ignore="If you did not create an account, you can safely ignore this email.",
    )


def send_login_code(to: str, code: str) -> bool:
    """Send a sign-in code."""
    return _send_code(
        "login",
        to,
        code,
        subject="AGRINVEST — Login code",
        title="Login code",
        intro="You asked to sign in to AGRINVEST. Use the code below to log in.",
        ignore="If you did not ask to sign in, you can safely ignore this email.",
    )
