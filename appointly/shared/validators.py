"""Shared validation utilities"""

import re
from typing import Optional

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Keeps a leading "+" and the digits; anything else (spaces, dashes,
    parentheses, dots) is dropped.

    Raises:
        ValueError: If the number does not have 7 to 15 digits
    """
    if not phone:
        return phone

    stripped = phone.strip()
    digits = re.sub(r"\D", "", stripped)

    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must have between 7 and 15 digits")

    return f"+{digits}" if stripped.startswith("+") else digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_slug(slug: Optional[str]) -> Optional[str]:
    """Booking URL keys: lowercase letters, digits and single dashes"""
    if slug is None:
        return slug

    slug = slug.strip().lower()
    if not SLUG_PATTERN.match(slug):
        raise ValueError("Slug may only contain lowercase letters, digits and dashes")
    return slug


def slugify(value: str) -> str:
    """Derive a slug from a display name"""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "provider"
