import pytest

from luco.services.payments.phone import digits_only, normalize_phone, validate_phone


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0708215305", "+256708215305"),
        ("708215305", "+256708215305"),
        ("256708215305", "+256708215305"),
        ("+256708215305", "+256708215305"),
        (" 0708 215 305 ", "+256708215305"),
        ("+254712345678", "+254712345678"),
        ("441234567890", "+441234567890"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


def test_normalize_phone_uses_given_country_code():
    assert normalize_phone("0712345678", country_code="254") == "+254712345678"


def test_digits_only():
    assert digits_only("+256 (708) 215-305") == "256708215305"
    assert digits_only(None) == ""


def test_validate_phone_rejects_short_numbers():
    with pytest.raises(ValueError, match="valid phone number"):
        validate_phone("12345")

    with pytest.raises(ValueError):
        validate_phone("")


def test_validate_phone_accepts_local_numbers():
    assert validate_phone(" 0708215305 ") == "0708215305"
