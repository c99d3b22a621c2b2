# tests/core/test_mailer.py
# =======================
# Reminder content, day labels and provider routing (DRY_RUN)
# =======================
from datetime import date

import pytest

from rsvp_service import mailer


@pytest.mark.parametrize(
    "days, label",
    [(0, "today"), (1, "just 1 day away"), (2, "2 days away"), (45, "45 days away"),
     (-1, "1 day ago"), (-3, "3 days ago")],
)
def test_days_label(days, label):
    assert mailer.days_label(days) == label


def test_subject_uses_label():
    assert mailer.reminder_subject(0).startswith("Our wedding is today!")
    assert mailer.reminder_subject(7).startswith("Our wedding is 7 days away!")


def test_days_until_event_reads_env(monkeypatch):
    monkeypatch.setenv("EVENT_DATE", "2026-05-02")
    assert mailer.days_until_event(today=date(2026, 4, 30)) == 2
    assert mailer.days_until_event(today=date(2026, 5, 2)) == 0
    assert mailer.days_until_event(today=date(2026, 5, 5)) == -3


def test_invalid_event_date_falls_back(monkeypatch):
    monkeypatch.setenv("EVENT_DATE", "next spring")
    assert mailer.event_date() == date(2026, 5, 2)


def test_format_event_date():
    assert mailer.format_event_date(date(2026, 5, 2)) == "Saturday, May 2, 2026"


EVENT = date(2026, 5, 2)


@pytest.mark.parametrize(
    "attendance_type, church, reception",
    [("church", True, False), ("reception", False, True), ("both", True, True)],
)
def test_sections_follow_attendance_type(attendance_type, church, reception):
    text = mailer.render_reminder_text("Ana", attendance_type, False, 3, EVENT)
    html_body = mailer.render_reminder_html("Ana", attendance_type, False, 3, EVENT)

    assert ("CHURCH CEREMONY" in text) is church
    assert ("RECEPTION" in text) is reception
    assert ("Church Ceremony" in html_body) is church
    assert ("Admiral Hotel Manila" in html_body) is reception


def test_church_reminders_only_for_non_inc_guests():
    non_inc = mailer.render_reminder_text("Ana", "church", False, 3, EVENT)
    inc = mailer.render_reminder_text("Ana", "church", True, 3, EVENT)

    assert "Church Reminders" in non_inc
    assert "Church Reminders" not in inc
    assert "Church Reminders" not in mailer.render_reminder_html("Ana", "both", True, 3, EVENT)


def test_html_escapes_names():
    body = mailer.render_reminder_html("<script>", "both", False, 1, EVENT)
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_dry_run_counts_as_success(monkeypatch):
    monkeypatch.setenv("DRY_RUN", "1")
    monkeypatch.setenv("EMAIL_PROVIDER", "sendgrid")
    assert mailer.send_email_html("ana@example.com", "hi", "<p>hi</p>") is True
    monkeypatch.setenv("EMAIL_PROVIDER", "gmail")
    assert mailer.send_email_html("ana@example.com", "hi", "<p>hi</p>", "hi") is True


def test_live_sendgrid_without_credentials_fails(monkeypatch):
    monkeypatch.setenv("DRY_RUN", "0")
    monkeypatch.setenv("EMAIL_PROVIDER", "sendgrid")
    monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
    monkeypatch.delenv("ALERT_WEBHOOK_URL", raising=False)

    assert mailer.send_email_html("ana@example.com", "hi", "<p>hi</p>") is False


def test_send_reminder_email_renders_and_routes(monkeypatch):
    sent = {}

    def _fake(to_email, subject, html_body, text_fallback=""):
        sent.update(to=to_email, subject=subject, html=html_body, text=text_fallback)
        return True

    monkeypatch.setattr(mailer, "send_email_html", _fake)

    assert mailer.send_reminder_email("ana@example.com", "Ana", "reception", False, days_away=1) is True
    assert sent["subject"].startswith("Our wedding is just 1 day away!")
    assert "Dear Ana," in sent["text"]
    assert "Reception" in sent["html"]


def test_alert_webhook_posts_when_configured(monkeypatch):
    posted = []
    monkeypatch.setenv("ALERT_WEBHOOK_URL", "https://hooks.example.com/x")
    monkeypatch.setattr(mailer.requests, "post", lambda url, **kw: posted.append((url, kw["data"])))

    mailer.send_alert_webhook("title", "body")

    assert posted == [("https://hooks.example.com/x", '{"text": "title\\nbody"}')]
