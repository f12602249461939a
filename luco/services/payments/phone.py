import re

from config import PHONE_COUNTRY_CODE

MIN_PHONE_DIGITS = 9


def digits_only(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def validate_phone(phone: str) -> str:
    """
    Reject input that cannot be a phone number before any network call is made.

    Returns:
        The stripped input

    Raises:
        ValueError: If the input holds fewer than MIN_PHONE_DIGITS digits
    """
    if len(digits_only(phone)) < MIN_PHONE_DIGITS:
        raise ValueError("Please enter a valid phone number.")
    return phone.strip()


def normalize_phone(phone: str, country_code: str = PHONE_COUNTRY_CODE) -> str:
    """
    Convert a local or international phone number to `+<country code><number>`.

    Local numbers are recognised as `07XXXXXXXX` or any 9-digit number;
    numbers already carrying the country code only gain a leading `+`.
    Anything else is passed through with a leading `+` ensured.
    """
    phone = phone.strip()
    digits = digits_only(phone)

    if digits.startswith("07") and len(digits) == 10:
        return f"+{country_code}{digits[1:]}"
    if len(digits) == 9:
        return f"+{country_code}{digits}"
    if digits.startswith(country_code) and len(digits) == len(country_code) + 9:
        return f"+{digits}"

    return phone if phone.startswith("+") else f"+{phone}"
