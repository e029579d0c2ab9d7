"""Twilio webhook signature verification and payload mapping."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Any, Mapping
from xml.sax.saxutils import escape

from propbot.bus.events import InboundMessage


def compute_twilio_signature(url: str, params: Mapping[str, str], auth_token: str) -> str:
    """Base64 HMAC-SHA1 of the URL followed by every sorted key and value."""
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_twilio_signature(
    url: str,
    params: Mapping[str, str],
    signature_header: str | None,
    auth_token: str,
) -> bool:
    """Verify X-Twilio-Signature against the request URL and form fields."""
    if not auth_token or not signature_header:
        return False
    expected = compute_twilio_signature(url, params, auth_token)
    return hmac.compare_digest(expected, signature_header.strip())


def parse_twilio_inbound(form: Mapping[str, Any]) -> InboundMessage | None:
    """Map a Twilio SMS form to an inbound message. None if From or Body is missing."""
    sender = str(form.get("From", "")).strip()
    body = str(form.get("Body", "")).strip()
    if not sender or not body:
        return None

    num_media = str(form.get("NumMedia", "0") or "0")
    return InboundMessage(
        sender_id=sender,
        recipient_id=str(form.get("To", "")).strip(),
        body=body,
        delivery_id=str(form.get("MessageSid") or form.get("SmsSid") or "") or None,
        metadata={
            "num_media": int(num_media) if num_media.isdigit() else 0,
            "from_city": form.get("FromCity", ""),
            "from_state": form.get("FromState", ""),
        },
    )


def twiml_response(message: str | None = None) -> str:
    """TwiML body, empty unless an immediate reply message is given."""
    inner = f"<Message>{escape(message)}</Message>" if message else ""
    return f'<?xml version="1.0" encoding="UTF-8"?><Response>{inner}</Response>'
