"""Shared validation utilities"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

# Largest value a Numeric(10, 2) amount column holds
MAX_AMOUNT = Decimal("99999999.99")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address, or None for blank input

    Raises:
        ValueError: If email format is invalid
    """
    if email is None:
        return None

    email = email.strip().lower()
    if not email:
        return None

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a US phone number to E.164 (+1XXXXXXXXXX).

    Numbers that are not 10 or 11 digits are kept as typed, since member
    records imported from other systems carry international numbers.
    """
    if phone is None:
        return None

    phone = phone.strip()
    if not phone:
        return None

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]
    if len(digits) == 10:
        return f"+1{digits}"
    return phone


def validate_amount(value) -> Decimal:
    """Parse a donation amount into a positive Decimal with two places"""
    try:
        amount = Decimal(str(value).strip().replace(",", "").lstrip("$"))
    except (InvalidOperation, AttributeError) as e:
        raise ValueError("Amount must be a number") from e

    if not amount.is_finite() or amount <= 0:
        raise ValueError("Amount must be greater than 0")
    if amount > MAX_AMOUNT:
        raise ValueError(f"Amount cannot exceed {MAX_AMOUNT:,}")

    try:
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation as e:
        raise ValueError("Amount must be a number") from e


def validate_password(password: str, min_length: int = 8) -> str:
    if not password or len(password) < min_length:
        raise ValueError(f"Password must be at least {min_length} characters long")
    return password


def slugify(value: str) -> str:
    """Lowercase, underscore-separated slug used for service option values"""
    slug = re.sub(r"[^a-z0-9]+", "_", value.strip().lower())
    return slug.strip("_")
