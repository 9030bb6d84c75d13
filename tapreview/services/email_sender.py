"""Email delivery: promo QR code to the customer after a public claim."""
import logging
import smtplib
from datetime import datetime
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from sqlmodel import Session

from tapreview.core.config import is_mail_configured, settings
from tapreview.core.database import engine
from tapreview.models import PromoEmail
from tapreview.services.qr import qr_png_bytes

log = logging.getLogger("tapreview.email")

# Templates: tapreview/templates
_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
_ENV = Environment(loader=FileSystemLoader(str(_TEMPLATES_DIR)), autoescape=True)

QR_CONTENT_ID = "qrcode"


def build_promo_email_html(
    customer_name: str,
    qr_url: str,
    promo_title: str,
    promo_description: str | None,
    valid_until: datetime | None,
) -> tuple[str, str]:
    """(subject, html_body) for the promo QR email. The QR image is referenced as cid:qrcode."""
    subject = f"{promo_title} - your QR code"
    html = _ENV.get_template("email/promo_qr.html").render(
        subject=subject,
        from_name=settings.smtp_from_name or "TapReview",
        customer_name=customer_name,
        promo_title=promo_title,
        promo_description=promo_description or "Join our special promotion!",
        valid_until=valid_until.strftime("%d/%m/%Y") if valid_until else None,
        qr_url=qr_url,
        qr_cid=QR_CONTENT_ID,
    )
    return subject, html


def send_email(to: str, subject: str, html_body: str, inline_image: bytes | None = None) -> bool:
    """Sends one HTML email, optionally with an inline PNG (Content-ID: qrcode). True on success."""
    if not is_mail_configured():
        log.warning("SMTP not configured; email not sent to %s", to)
        return False
    host = settings.smtp_host.strip()
    port = int(settings.smtp_port or 587)
    user = (settings.smtp_user or "").strip()
    password = settings.smtp_password or ""
    from_addr = settings.smtp_from.strip()
    from_name = (settings.smtp_from_name or "").strip()
    msg = MIMEMultipart("related")
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_addr}>" if from_name else from_addr
    msg["To"] = to
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    if inline_image:
        img = MIMEImage(inline_image, _subtype="png")
        img.add_header("Content-ID", f"<{QR_CONTENT_ID}>")
        img.add_header("Content-Disposition", "inline", filename="qrcode.png")
        msg.attach(img)
    try:
        with smtplib.SMTP(host, port, timeout=15) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if user and password:
                smtp.login(user, password)
            smtp.sendmail(from_addr, [to], msg.as_string())
        log.info("Email sent to %s subject=%s", to, subject[:50])
        return True
    except Exception as e:
        log.exception("Failed to send email to %s: %s", to, e)
        return False


def send_promo_qr_email(
    to_email: str,
    customer_name: str,
    code: str,
    qr_url: str,
    promo_title: str,
    promo_description: str | None,
    valid_until: datetime | None,
) -> bool:
    """
    Background task after a claim: logs the attempt in promo_emails
    (queued -> sent | failed) and never raises.
    """
    email_log_id = None
    try:
        with Session(engine) as db:
            row = PromoEmail(name=customer_name, email=to_email, code=code, promo_title=promo_title, status="queued")
            db.add(row)
            db.commit()
            db.refresh(row)
            email_log_id = row.id
    except Exception as e:
        log.warning("PromoEmail log write failed: %s", e)

    sent = False
    error = None
    try:
        subject, html = build_promo_email_html(customer_name, qr_url, promo_title, promo_description, valid_until)
        sent = send_email(to_email, subject, html, inline_image=qr_png_bytes(qr_url))
        if not sent:
            error = "SMTP not configured" if not is_mail_configured() else "SMTP send failed"
    except Exception as e:
        log.exception("QR email build failed for %s: %s", to_email, e)
        error = str(e)[:500]

    if email_log_id is not None:
        try:
            with Session(engine) as db:
                row = db.get(PromoEmail, email_log_id)
                if row:
                    row.status = "sent" if sent else "failed"
                    row.error = error
                    db.add(row)
                    db.commit()
        except Exception as e:
            log.warning("PromoEmail status update failed: %s", e)
    if sent:
        log.info("QR email sent to %s code=%s", to_email, code)
    else:
        log.warning("QR email not sent to %s code=%s: %s", to_email, code, error)
    return sent
