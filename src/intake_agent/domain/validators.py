"""Pure value checks per field type. No I/O. A failed check never rejects a value."""

from __future__ import annotations

import re
from datetime import datetime

from intake_agent.config.models import FieldSpec

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_RE = re.compile(r"^(https?://)?[\w-]+(\.[\w-]+)+(/\S*)?$", re.IGNORECASE)
NUMBER_RE = re.compile(r"-?\d[\d,]*(\.\d+)?")

# Common domain typos -> intended domain
EMAIL_DOMAIN_TYPOS = {
    "gmial.com": "gmail.com",
    "gmai.com": "gmail.com",
    "gmal.com": "gmail.com",
    "yahooo.com": "yahoo.com",
    "yaho.com": "yahoo.com",
    "hotmial.com": "hotmail.com",
    "outlok.com": "outlook.com",
}

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%d.%m.%Y", "%B %d, %Y", "%b %d, %Y")
RELATIVE_DATE_WORDS = ("today", "tomorrow", "next", "this", "asap", "week", "month", "weekend")


def validate_email(value: str) -> tuple[bool, str]:
    """Return (is_valid, error_message)."""
    v = value.strip()
    if not v:
        return False, "Email is required."
    if not EMAIL_RE.match(v):
        return False, "Please enter a valid email address."
    local, _, domain = v.rpartition("@")
    fixed = EMAIL_DOMAIN_TYPOS.get(domain.lower())
    if fixed:
        return False, f"Did you mean {local}@{fixed}?"
    return True, ""


def validate_phone(value: str) -> tuple[bool, str]:
    v = value.strip()
    if not v:
        return False, "Phone number is required."
    digits = re.sub(r"\D", "", v)
    if len(digits) < 10:
        return False, "Please enter a valid phone number (at least 10 digits)."
    return True, ""


def validate_number(value: str) -> tuple[bool, str]:
    # Fuzzy answers like "around $500" or "300-400" are fine as long as a number is in there.
    if not NUMBER_RE.search(value):
        return False, "Please provide a number."
    return True, ""


def validate_date(value: str) -> tuple[bool, str]:
    v = value.strip()
    if not v:
        return False, "Date is required."
    for fmt in DATE_FORMATS:
        try:
            datetime.strptime(v, fmt)
            return True, ""
        except ValueError:
            continue
    lowered = v.lower()
    if any(word in lowered for word in RELATIVE_DATE_WORDS) or re.search(r"\d", v):
        return True, ""
    return False, "Please provide a date."


def validate_url(value: str) -> tuple[bool, str]:
    if not URL_RE.match(value.strip()):
        return False, "Please provide a valid web address."
    return True, ""


def validate_select(value: str, options: list[str]) -> tuple[bool, str]:
    if not options:
        return True, ""
    if value.strip().casefold() in {o.casefold() for o in options}:
        return True, ""
    return False, f"Please choose one of: {', '.join(options)}."


def check_field_value(value: str, spec: FieldSpec) -> tuple[bool, str]:
    """Dispatch to the right check by field type. text and file_upload accept anything non-empty."""
    if spec.type == "email":
        return validate_email(value)
    if spec.type == "phone":
        return validate_phone(value)
    if spec.type == "number":
        return validate_number(value)
    if spec.type == "date":
        return validate_date(value)
    if spec.type == "url":
        return validate_url(value)
    if spec.type == "select":
        return validate_select(value, spec.options)
    if not value.strip():
        return False, "This field is required."
    return True, ""
