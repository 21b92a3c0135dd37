"""Shared validation utilities"""

import re
from typing import Optional

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def normalize_phone(raw: str) -> str:
    """Remove every non-digit character"""
    return re.sub(r"\D", "", raw or "")


def validate_br_phone(phone: Optional[str]) -> str:
    """
    Validate a Brazilian phone number and return its digits.

    Format: DDD (11-99) followed by an 8 or 9 digit number; 11-digit numbers
    are mobiles and must have 9 right after the DDD.

    Raises:
        ValueError: If phone number is invalid
    """
    digits = normalize_phone(phone or "")

    if len(digits) < 10 or len(digits) > 11:
        raise ValueError("Phone number must have 10 or 11 digits including area code")

    ddd = int(digits[:2])
    if ddd < 11 or ddd > 99:
        raise ValueError("Invalid area code")

    if len(digits) == 11 and digits[2] != "9":
        raise ValueError("Mobile numbers must start with 9")

    number_part = digits[2:]
    if re.fullmatch(r"0+", number_part) or re.fullmatch(r"1+", number_part):
        raise ValueError("Invalid phone number")

    return digits


def validate_client_name(name: Optional[str]) -> str:
    """
    Validate a client name: at least 2 characters and no digits.

    Raises:
        ValueError: If the name is invalid
    """
    trimmed = (name or "").strip()
    if len(trimmed) < 2 or re.search(r"\d", trimmed):
        raise ValueError("Name must have at least 2 characters and no numbers")
    return trimmed


def validate_hhmm(value: Optional[str]) -> Optional[str]:
    """Validate a zero-padded 24-hour HH:MM clock time"""
    if value is None:
        return value
    if not HHMM_PATTERN.match(value):
        raise ValueError("Time must use the HH:MM 24-hour format")
    return value
