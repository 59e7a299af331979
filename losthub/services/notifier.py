from __future__ import annotations

import html
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Dict, List, Optional

from config import settings
from losthub.scripts.logging_config import get_logger

logger = get_logger("notifier")


def _sender() -> str:
    return settings.SMTP_SENDER or settings.SMTP_USER or "no-reply@example.com"


def _score_pct(score) -> str:
    try:
        return f"{round(float(score) * 100)}%"
    except (TypeError, ValueError):
        return "N/A"


def build_match_message(recipient_email: str, subject_item: Dict, matches: List[Dict]) -> EmailMessage:
    brand = settings.MAIL_BRAND
    item_name = subject_item.get("name") or "your item"
    reported = datetime.now(timezone.utc).strftime("%Y-%m-%d")

    rows_html = []
    rows_text = []
    for m in matches:
        name = m.get("name") or "Unnamed item"
        desc = m.get("description") or ""
        place = m.get("lastSeenLocation") or "N/A"
        pct = _score_pct(m.get("score"))
        rows_html.append(
            f"<li><strong>{html.escape(name)}</strong> (Score: {pct})<br>"
            f"Description: {html.escape(desc)}<br>"
            f"Location: {html.escape(place)}</li>"
        )
        rows_text.append(f"- {name} (Score: {pct})\n  Description: {desc}\n  Location: {place}")

    body_html = (
        "<p>Hello,</p>"
        f"<p>We found {len(matches)} possible match(es) for "
        f"<strong>\"{html.escape(subject_item.get('description') or item_name)}\"</strong> "
        f"as of {reported}.</p>"
        "<h3>Possible Matches:</h3>"
        f"<ul>{''.join(rows_html)}</ul>"
        "<p>Please log in to your account to view more details on the item(s).</p>"
        f"<p>Thank you,<br>{html.escape(brand)} Team</p>"
    )
    body_text = (
        f"We found {len(matches)} possible match(es) for \"{subject_item.get('description') or item_name}\" "
        f"as of {reported}.\n\n" + "\n".join(rows_text) +
        f"\n\nPlease log in to your account to view more details.\n{brand} Team"
    )

    msg = EmailMessage()
    msg["Subject"] = f"[{brand}] Possible Match Found for: {item_name}"
    msg["From"] = f"\"{item_name} Match Alert\" <{_sender()}>"
    msg["To"] = recipient_email
    msg.set_content(body_text)
    msg.add_alternative(body_html, subtype="html")
    return msg


def send_match_notification(recipient_email: Optional[str], subject_item: Dict, matches: List[Dict]) -> bool:
    """Email `recipient_email` about `matches` for `subject_item`.

    Best-effort: transport errors are logged and swallowed. Returns True only
    when the message was handed to the SMTP server.
    """
    if not matches:
        return False
    if not recipient_email:
        logger.info("email_skip_no_address item=%s", subject_item.get("id"))
        return False
    if not settings.SMTP_HOST:
        logger.warning("email_skip_no_smtp to=%s", recipient_email)
        return False
    try:
        msg = build_match_message(recipient_email, subject_item, matches)
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=20) as server:
            server.starttls()
            if settings.SMTP_USER and settings.SMTP_PASS:
                server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.send_message(msg)
        logger.info("email_sent to=%s subject=%r matches=%d", recipient_email, msg["Subject"], len(matches))
        return True
    except Exception as e:
        logger.error("email_error to=%s err=%s", recipient_email, e)
        return False
