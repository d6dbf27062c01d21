"""Split a free-text contact blob into name, phone and email."""

import re
from typing import Optional

from show_pipeline.models import ContactInfo

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
# 214-555-0123, (214) 555-0123, 214.555.0123, +1 214 555 0123, 555-0123
PHONE_PATTERN = re.compile(r"(?:\+?1[-\s.]?)?(?:\(?\d{3}\)?[-\s.]?)?\d{3}[-\s.]\d{4}")
CONNECTORS = re.compile(
    r"^\s*(?:contact|call|text|email)\s*:?\s+|^\s*at\s+|\s+at\s*$|\s*@\s*",
    re.IGNORECASE,
)


def _clean_name(text: str) -> Optional[str]:
    name = CONNECTORS.sub(" ", text)
    name = re.sub(r"\s+", " ", name).strip(" -–:,;|/()")
    return name if len(name) > 1 else None


def extract_contact_info(text: Optional[str]) -> ContactInfo:
    """Pull email, phone and a leading name out of a contact blob."""
    if not text or not text.strip():
        return ContactInfo()

    email_match = EMAIL_PATTERN.search(text)
    phone_match = PHONE_PATTERN.search(text)

    contact = ContactInfo(
        email=email_match.group(0) if email_match else None,
        phone=phone_match.group(0).strip() if phone_match else None,
    )

    # Name is whatever precedes the first identifier
    anchor = email_match or phone_match
    if anchor:
        first = min(m.start() for m in (email_match, phone_match) if m)
        contact.name = _clean_name(text[:first])
    return contact
