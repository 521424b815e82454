"""Shared validation utilities"""

import re
from typing import Optional

from ..config import HOME_COUNTRY_CODE
from ..exceptions import ValidationError

# Indian mobile numbers: 10 digits starting with 6-9, optionally +91
PHONE_PATTERN = re.compile(rf"^(\+{HOME_COUNTRY_CODE})?[6-9]\d{{9}}$")


def normalize_phone(phone: Optional[str]) -> str:
    """
    Normalize a phone number to bare digits with the home country code.

    Args:
        phone: Phone number string in various formats

    Returns:
        Digits only, e.g. 919876543210

    Raises:
        ValidationError: If the number is not 10 digits or country code + 10 digits
    """
    digits = re.sub(r"\D", "", phone or "")
    code = HOME_COUNTRY_CODE

    # Country code entered twice (e.g. "+91 919876543210")
    if len(digits) == 2 * len(code) + 10 and digits.startswith(code * 2):
        digits = digits[len(code) :]

    if len(digits) == 10:
        return f"{code}{digits}"
    if len(digits) == len(code) + 10 and digits.startswith(code):
        return digits

    raise ValidationError(f"Invalid phone number: {phone!r}")


def is_valid_phone_number(phone: Optional[str]) -> bool:
    """Standalone check used by forms and the test endpoint"""
    if not phone:
        return False
    return bool(PHONE_PATTERN.match(re.sub(r"\s", "", phone)))


def validate_indian_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a mobile number to E.164 format for storage.

    Returns:
        Normalized phone number (+91XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid (pydantic reports it as a 422)
    """
    if not phone:
        return phone

    try:
        digits = normalize_phone(phone)
    except ValidationError as e:
        raise ValueError(e.message) from e

    if not is_valid_phone_number(digits[len(HOME_COUNTRY_CODE) :]):
        raise ValueError("Mobile number must be 10 digits starting with 6, 7, 8 or 9")

    return f"+{digits}"


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


def validate_slug(slug: str) -> str:
    """Lowercase letters, digits and single hyphens, e.g. dr-sharma-clinic"""
    slug = (slug or "").strip().lower()
    if not re.match(r"^[a-z0-9]+(-[a-z0-9]+)*$", slug):
        raise ValueError("Slug may only contain lowercase letters, digits and hyphens")
    return slug
