"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Args:
        phone: Phone number string in various formats ("+1 (555) 010-2000", "0555 123 456")

    Returns:
        The number with formatting characters removed, keeping a leading "+"

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # ITU-T E.164 allows at most 15 digits
    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return f"{prefix}{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Please enter a valid email")

    return email


def validate_password(password: Optional[str], min_length: int = 6) -> Optional[str]:
    if password is not None and len(password) < min_length:
        raise ValueError(f"Password must be at least {min_length} characters")
    return password


def validate_dob(dob: Optional[date]) -> Optional[date]:
    if dob and dob > date.today():
        raise ValueError("Date of birth cannot be in the future")
    return dob
