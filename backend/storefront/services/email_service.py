# Overview: Transactional email through Resend.

from __future__ import annotations

from urllib.parse import urlencode

import resend
from flask import current_app
from markupsafe import escape


class EmailError(Exception):
    """Raised when the provider rejects or cannot accept a message."""
    pass


def send_email(to_email: str, subject: str, html: str) -> str | None:
    """
    Send one message and return the provider's message id.

    With EMAIL_ENABLED off (tests, local runs without a key) the message is
    only logged.
    """
    cfg = current_app.config
    if not cfg.get("EMAIL_ENABLED"):
        current_app.logger.info("Email disabled; would send %r to %s", subject, to_email)
        return None

    if not cfg.get("RESEND_API_KEY"):
        raise EmailError("RESEND_API_KEY is not configured")

    resend.api_key = cfg["RESEND_API_KEY"]
    params = {
        "from": cfg["RESEND_FROM_EMAIL"],
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    try:
        response = resend.Emails.send(params)
    except Exception as e:
        raise EmailError(str(e)) from e
    return response.get("id") if isinstance(response, dict) else getattr(response, "id", None)


def send_password_reset(to_email: str, username: str, token: str) -> str | None:
    query = urlencode({"email": to_email, "token": token})
    reset_url = f"{current_app.config['FRONTEND_URL'].rstrip('/')}/reset-password?{query}"
    ttl = current_app.config["PASSWORD_RESET_TTL_MINUTES"]
    html = f"""
        <html>
            <body>
                <p>Hello {escape(username)},</p>
                <p>We received a request to reset your password.</p>
                <p><a href="{escape(reset_url)}">Choose a new password</a></p>
                <p>This link expires in {ttl} minutes. If you did not ask for it, ignore this email.</p>
            </body>
        </html>
    """
    return send_email(to_email, "Reset your password", html)
