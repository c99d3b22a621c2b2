# rsvp_service/mailer.py  # Email sending + reminder templates.

# =================================================================================
# 📧 EMAIL MODULE (HTML + text)
# ---------------------------------------------------------------------------------
# Routes sends through SendGrid or Gmail SMTP (EMAIL_PROVIDER), with DRY_RUN
# simulation (default on), an optional alert webhook, and the reminder email
# rendered from attendance type / INC membership / days until the event.
# Settings are read at call time so operators and tests can change them live.
# =================================================================================

# 🐍 Imports
import html                                                # Escapes free values inside HTML.
import json                                                # Webhook payloads.
import os                                                  # Environment variables (.env).
import smtplib                                             # Gmail SMTP.
import socket                                              # IPv4-only DNS resolution.
from datetime import date, datetime                        # Event date arithmetic.
from email.mime.multipart import MIMEMultipart             # Message container.
from email.mime.text import MIMEText                       # Text/HTML parts.
from ssl import create_default_context                     # TLS context.
from typing import Optional, Tuple

import requests                                            # Alert webhook.
from loguru import logger                                  # Structured logs.
from sendgrid import SendGridAPIClient                     # Official SendGrid client.
from sendgrid.helpers.mail import From, Mail               # SendGrid message builder.

from rsvp_service.utils.pii import mask_email

DEFAULT_EVENT_DATE = "2026-05-02"
DEFAULT_COUPLE_NAMES = "Jann Daniel & Faith"


def _dry_run() -> bool:
    return os.getenv("DRY_RUN", "1") == "1"


def _smtp_connect_ipv4(host: str, port: int, timeout: float) -> smtplib.SMTP:
    """
    Opens an SMTP connection over IPv4, supporting 587 (STARTTLS) and 465 (SMTPS).
    Connects to the resolved IPv4 literal so no IPv6 route is attempted.
    """
    addrinfo = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    ipv4_ip = addrinfo[0][4][0]

    if port == 465:
        return smtplib.SMTP_SSL(host=ipv4_ip, port=port, timeout=timeout, context=create_default_context())

    server = smtplib.SMTP(timeout=timeout)
    server.connect(ipv4_ip, port)
    return server

# =================================================================================
# 📢 Alert webhook (optional)
# =================================================================================
def send_alert_webhook(title: str, message: str) -> None:
    """Posts a short alert to ALERT_WEBHOOK_URL when set; silent otherwise."""
    url = os.getenv("ALERT_WEBHOOK_URL")
    if not url:
        return
    try:
        payload = {"text": f"{title}\n{message}"}                      # Slack/Teams compatible.
        headers = {"Content-Type": "application/json"}
        requests.post(url, data=json.dumps(payload), headers=headers, timeout=5)
    except Exception as e:
        logger.error("Could not deliver alert webhook: {}", e)

# =================================================================================
# ✉️ Providers
# =================================================================================
def _send_html_via_gmail(to_email: str, subject: str, html_body: str, text_fallback: str = "") -> bool:
    """Sends multipart/alternative (text + HTML) through Gmail SMTP."""
    host = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    port = int(os.getenv("EMAIL_PORT", "587"))
    user = os.getenv("EMAIL_USER", "")
    pwd = os.getenv("EMAIL_PASS", "")
    sender_name = os.getenv("EMAIL_SENDER_NAME", DEFAULT_COUPLE_NAMES)
    from_addr = os.getenv("EMAIL_FROM", user)

    if _dry_run():
        logger.info(
            "[DRY_RUN] (HTML/gmail) Simulated send to {} | Subject: {}\n{}...",
            mask_email(to_email), subject, text_fallback[:160],
        )
        return True

    if not (user and pwd and from_addr):
        logger.error("Gmail SMTP is not configured (EMAIL_USER/EMAIL_PASS/EMAIL_FROM).")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{sender_name} <{from_addr}>"
        msg["To"] = (to_email or "").strip()
        if os.getenv("EMAIL_REPLY_TO"):
            msg["Reply-To"] = os.getenv("EMAIL_REPLY_TO")
        msg["Subject"] = subject

        if text_fallback:
            msg.attach(MIMEText(text_fallback, "plain", "utf-8"))  # Plain part first.
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        timeout = float(os.getenv("SMTP_TIMEOUT", "30"))
        server = _smtp_connect_ipv4(host, port, timeout)
        if port == 587:
            server.ehlo()
            server.starttls(context=create_default_context())
            server.ehlo()
        server.login(user, pwd)
        server.sendmail(from_addr, [msg["To"]], msg.as_string())
        server.quit()
        logger.info("Gmail SMTP (HTML) → sent to {}", mask_email(msg["To"]))
        return True
    except Exception as e:
        logger.exception("Gmail SMTP (HTML) → exception sending to {}: {}", mask_email(to_email), e)
        return False


def _send_html_via_sendgrid(to_email: str, subject: str, html_body: str, text_fallback: str = "") -> bool:
    from_email = os.getenv("EMAIL_FROM", "")
    api_key = os.getenv("SENDGRID_API_KEY", "")
    sender_name = os.getenv("EMAIL_SENDER_NAME", DEFAULT_COUPLE_NAMES)

    logger.debug("Mailer check (SendGrid) -> DRY_RUN={} | FROM={} | SG_KEY_SET={}", _dry_run(), from_email, bool(api_key))
    if _dry_run():
        logger.info("[DRY_RUN] (HTML/sendgrid) Simulated send to {} | Subject: {}", mask_email(to_email), subject)
        return True
    if not from_email or not api_key:
        logger.error("Mailer config incomplete (SendGrid): EMAIL_FROM or SENDGRID_API_KEY missing.")
        send_alert_webhook("🚨 Mailer config (SendGrid)", "EMAIL_FROM or SENDGRID_API_KEY missing (live mode).")
        return False

    message = Mail(
        from_email=From(from_email, sender_name),
        to_emails=to_email,
        subject=subject,
        plain_text_content=(text_fallback or "This email is best viewed in an HTML-compatible client."),
        html_content=html_body,
    )
    if os.getenv("EMAIL_REPLY_TO"):
        message.reply_to = os.getenv("EMAIL_REPLY_TO")
    try:
        response = SendGridAPIClient(api_key).send(message)
        logger.info(
            "SendGrid response: {} | X-Message-Id: {}",
            response.status_code, response.headers.get("X-Message-Id"),
        )
        if 200 <= response.status_code < 300:
            return True
        logger.error("SendGrid error -> status={} | body={}", response.status_code, getattr(response, "body", None))
        return False
    except Exception as e:
        logger.exception("Exception sending HTML with SendGrid to {}: {}", mask_email(to_email), e)
        return False


def send_email_html(to_email: str, subject: str, html_body: str, text_fallback: str = "") -> bool:
    """Sends an HTML email through the configured provider (sendgrid | gmail). True on success."""
    provider = os.getenv("EMAIL_PROVIDER", "sendgrid").lower()
    if provider == "gmail":
        return _send_html_via_gmail(to_email, subject, html_body, text_fallback)
    return _send_html_via_sendgrid(to_email, subject, html_body, text_fallback)

# =================================================================================
# 🗓️ Event date helpers
# =================================================================================
def event_date() -> date:
    raw = os.getenv("EVENT_DATE", DEFAULT_EVENT_DATE).strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        logger.warning("EVENT_DATE '{}' is not YYYY-MM-DD; using {}", raw, DEFAULT_EVENT_DATE)
        return date.fromisoformat(DEFAULT_EVENT_DATE)


def days_until_event(today: Optional[date] = None, event: Optional[date] = None) -> int:
    """Whole days from `today` to the event; negative once the date has passed."""
    today = today or datetime.now().date()
    event = event or event_date()
    return (event - today).days


def days_label(days_away: int) -> str:
    if days_away == 0:
        return "today"
    if days_away == 1:
        return "just 1 day away"
    if days_away < 0:
        n = abs(days_away)
        return "1 day ago" if n == 1 else f"{n} days ago"
    return f"{days_away} days away"


def format_event_date(event: date) -> str:
    """Saturday, May 2, 2026 (English, independent of the system locale)."""
    return f"{event.strftime('%A')}, {event.strftime('%B')} {event.day}, {event.year}"


def reminder_subject(days_away: int) -> str:
    return f"Our wedding is {days_label(days_away)}! 💌"

# =================================================================================
# 💌 Reminder templates
# =================================================================================
CHURCH_DETAILS = (
    ("Venue", "Iglesia Ni Cristo – Locale of Pasay"),
    ("Location", "Pasay City, Metro Manila"),
    ("Date", "May 2, 2026"),
    ("Time", "2:15 PM"),
)
CHURCH_NOTE = "Please arrive 15–20 minutes early to be seated before the ceremony begins."
CHURCH_REMINDERS_INTRO = "As our guest, we kindly ask you to observe the following during the worship service:"
CHURCH_REMINDERS = (
    "Men are seated on the left side of the aisle; women on the right side.",
    "Remain seated quietly and avoid unnecessary movement during worship.",
    "Set your mobile phone to silent. Photos and videos inside the church during the worship service are not allowed.",
    'Respect the prayer by remaining quiet while members respond with "Yes" or "Amen" as led by the minister.',
)
CHURCH_REMINDERS_FOOTNOTE = "These practices are part of the worship tradition. Your respectful presence is appreciated."
RECEPTION_DETAILS = (
    ("Venue", "Admiral Hotel Manila – MGallery"),
    ("Location", "Roxas Boulevard, Manila"),
    ("Time", "6:00 PM"),
)
RECEPTION_NOTE = "Join us for dinner, dancing, and celebration as we begin our journey together."
ATTIRE_DETAILS = (("Gentlemen", "Barong Tagalog"), ("Ladies", "Long Gown / Dress"))
ATTIRE_NOTE = (
    "Color palette: Deep Forest Green, Standard Green, Olive Green, Sand Beige, and Deep Brown. "
    "Please honor the dress code to ensure a cohesive and elegant celebration."
)


def reminder_sections(attendance_type: str) -> Tuple[bool, bool]:
    """(show_church, show_reception) for an attendance type."""
    kind = getattr(attendance_type, "value", attendance_type)
    return kind in ("church", "both"), kind in ("reception", "both")


def render_reminder_text(first_name: str, attendance_type: str, is_inc: bool, days_away: int, event: date) -> str:
    show_church, show_reception = reminder_sections(attendance_type)
    couple = os.getenv("COUPLE_NAMES", DEFAULT_COUPLE_NAMES)
    lines = [
        couple,
        format_event_date(event),
        "",
        f"Our wedding is {days_label(days_away)}!",
        "",
        f"Dear {first_name},",
        "We are so excited to celebrate our special day with you. This is a friendly reminder "
        "that our wedding is coming up and we can't wait to see you there!",
    ]
    if show_church:
        lines += ["", "CHURCH CEREMONY"] + [f"{k}: {v}" for k, v in CHURCH_DETAILS] + [CHURCH_NOTE]
        if not is_inc:
            lines += ["", "Church Reminders", CHURCH_REMINDERS_INTRO]
            lines += [f"- {item}" for item in CHURCH_REMINDERS]
            lines.append(CHURCH_REMINDERS_FOOTNOTE)
    if show_reception:
        lines += ["", "RECEPTION"] + [f"{k}: {v}" for k, v in RECEPTION_DETAILS] + [RECEPTION_NOTE]
    lines += ["", "ATTIRE (STRICTLY FORMAL)"] + [f"{k}: {v}" for k, v in ATTIRE_DETAILS] + [ATTIRE_NOTE]
    lines += [
        "",
        "We are looking forward to sharing this moment with you. See you soon!",
        "With love,",
        couple,
        "",
        "You received this email because you RSVP'd to our wedding.",
    ]
    return "\n".join(lines)


def _details_html(details) -> str:
    return "<br>".join(f"<strong>{html.escape(k)}:</strong> {html.escape(v)}" for k, v in details)


def render_reminder_html(first_name: str, attendance_type: str, is_inc: bool, days_away: int, event: date) -> str:
    show_church, show_reception = reminder_sections(attendance_type)
    couple = html.escape(os.getenv("COUPLE_NAMES", DEFAULT_COUPLE_NAMES))
    label = html.escape(days_label(days_away))
    hr = '<hr style="border-color:#e8d9c8;margin:0">'
    section = '<div style="padding:24px 40px">{}</div>'
    h3 = '<h3 style="color:#5a1020;font-size:17px;border-left:3px solid #7a1e2e;padding-left:12px">{}</h3>'
    note = '<p style="color:#7a4a55;font-size:13px;font-style:italic">{}</p>'

    parts = [
        '<div style="background:#7a1e2e;padding:32px 40px;text-align:center">'
        f'<h1 style="color:#fdf8f3;font-size:28px;margin:0 0 8px 0">{couple}</h1>'
        f'<p style="color:#f5e6d3;font-size:14px;margin:0">{html.escape(format_event_date(event))}</p></div>',
        hr,
        section.format(
            f'<h2 style="color:#5a1020">Our wedding is {label}!</h2>'
            f"<p>Dear {html.escape(first_name)},</p>"
            "<p>We are so excited to celebrate our special day with you. This is a friendly reminder "
            "that our wedding is coming up and we can't wait to see you there!</p>"
        ),
        hr,
    ]

    if show_church:
        church = h3.format("Church Ceremony") + f"<p>{_details_html(CHURCH_DETAILS)}</p>" + note.format(html.escape(CHURCH_NOTE))
        if not is_inc:
            items = "".join(f"<li>{html.escape(item)}</li>" for item in CHURCH_REMINDERS)
            church += (
                '<div style="background:#eff6ff;border-left:4px solid #2563eb;padding:16px;margin-top:12px">'
                '<p style="color:#1e40af;font-weight:bold">Church Reminders</p>'
                f"<p>{html.escape(CHURCH_REMINDERS_INTRO)}</p><ul>{items}</ul>"
                f'<p style="color:#6b7280;font-size:12px;font-style:italic">{html.escape(CHURCH_REMINDERS_FOOTNOTE)}</p>'
                "</div>"
            )
        parts.append(section.format(church))
    if show_church and show_reception:
        parts.append(hr)
    if show_reception:
        parts.append(section.format(
            h3.format("Reception") + f"<p>{_details_html(RECEPTION_DETAILS)}</p>" + note.format(html.escape(RECEPTION_NOTE))
        ))

    parts += [
        hr,
        section.format(h3.format("Attire (Strictly Formal)") + f"<p>{_details_html(ATTIRE_DETAILS)}</p>" + note.format(html.escape(ATTIRE_NOTE))),
        hr,
        section.format(
            "<p>We are looking forward to sharing this moment with you. See you soon!</p>"
            f"<p>With love,<br><strong>{couple}</strong></p>"
        ),
        '<div style="background:#fdf8f3;padding:16px 40px;text-align:center">'
        '<p style="color:#9a8070;font-size:12px">You received this email because you RSVP\'d to our wedding.</p></div>',
    ]
    body = "".join(parts)
    return (
        '<html><body style="background:#fdf8f3;font-family:Georgia,serif;margin:0;padding:24px 0">'
        '<div style="background:#ffffff;max-width:560px;margin:0 auto;border:1px solid #e8d9c8;border-radius:8px">'
        f"{body}</div></body></html>"
    )

# =================================================================================
# 🧩 High-level helper
# =================================================================================
def send_reminder_email(
    to_email: str,
    first_name: str,
    attendance_type: str,
    is_inc: bool,
    days_away: Optional[int] = None,
) -> bool:
    """Renders and sends one reminder. True when the provider accepted it (or DRY_RUN)."""
    event = event_date()
    if days_away is None:
        days_away = days_until_event(event=event)
    subject = reminder_subject(days_away)
    text_body = render_reminder_text(first_name, attendance_type, is_inc, days_away, event)
    html_body = render_reminder_html(first_name, attendance_type, is_inc, days_away, event)
    return send_email_html(to_email, subject, html_body, text_fallback=text_body)
