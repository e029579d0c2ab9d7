"""Masking helpers for phone numbers and e-mail addresses in log output."""

import re
from typing import Any

_PHONE_RE = re.compile(r"(\+?[1-9]\d{0,2}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
_SENSITIVE_KEYS = ("phone", "phonenumber", "from", "to", "email")


def mask_phone_number(phone_number: str | None) -> str:
    """Mask a phone number, keeping the first 4 and last 3 characters (``+1234****890``)."""
    if not phone_number or not isinstance(phone_number, str):
        return "INVALID_NUMBER"

    cleaned = re.sub(r"[^\d+]", "", phone_number)
    if len(cleaned) < 7:
        return "***-****"

    masked_middle = "*" * min(len(cleaned) - 7, 4)
    return f"{cleaned[:4]}{masked_middle}{cleaned[-3:]}"


def mask_email(email: str | None) -> str:
    """Mask the local part of an e-mail address (``j***@example.com``)."""
    if not email or not isinstance(email, str) or "@" not in email:
        return "INVALID_EMAIL"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def mask_mapping(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with phone and e-mail looking values masked."""
    masked = dict(data)
    for key, value in data.items():
        lowered = key.lower()
        if not any(k in lowered for k in _SENSITIVE_KEYS):
            continue
        if "email" in lowered:
            masked[key] = mask_email(value)
        else:
            masked[key] = mask_phone_number(value)
    return masked


def sanitize_message(message: str) -> str:
    """Mask every phone number and e-mail address found in free text."""
    if not message or not isinstance(message, str):
        return message
    message = _EMAIL_RE.sub(lambda m: f"{m.group(1)}***@{m.group(2)}", message)
    return _PHONE_RE.sub(lambda m: mask_phone_number(m.group(0)), message)
