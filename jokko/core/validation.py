# jokko/core/validation.py
"""
Field normalizers shared by request schemas.

Each function returns the sanitized value or raises ValueError with a
user-facing message; pydantic turns that into a field-level 422.
"""
import re

_SENEGAL_PHONE = re.compile(r"^\+221[0-9]{9}$")
_US_PHONE = re.compile(r"^\+1[0-9]{10}$")

_NAME = re.compile(r"^[a-zA-ZÀ-ÿ\s\-']+$")
_SERVICE_TYPE = re.compile(r"^[a-zA-Z0-9\s\-]+$")
_LOCATION = re.compile(r"^[a-zA-Z0-9\s\-,]+$")


def normalize_phone(phone: str) -> str:
    """
    Normalize a Senegal (+221) or US (+1) number to E.164.

    Bare 9-digit numbers are assumed Senegalese, bare 10-digit numbers US.
    """
    if not phone or not phone.strip():
        raise ValueError("Phone number is required")

    cleaned = re.sub(r"[^\d+]", "", phone)
    if _SENEGAL_PHONE.match(cleaned) or _US_PHONE.match(cleaned):
        return cleaned

    digits = cleaned.lstrip("+")
    if len(digits) == 9:
        return f"+221{digits}"
    if len(digits) == 10:
        return f"+1{digits}"

    raise ValueError(
        "Invalid phone number format. Use +221XXXXXXXXX for Senegal "
        "or +1XXXXXXXXXX for US"
    )


def validate_person_name(name: str) -> str:
    trimmed = (name or "").strip()
    if len(trimmed) < 2:
        raise ValueError("Name must be at least 2 characters long")
    if len(trimmed) > 100:
        raise ValueError("Name must be less than 100 characters")
    if not _NAME.match(trimmed):
        raise ValueError("Name contains invalid characters")
    return trimmed


def validate_service_type(service_type: str) -> str:
    trimmed = (service_type or "").strip()
    if len(trimmed) < 2:
        raise ValueError("Service type must be at least 2 characters long")
    if len(trimmed) > 50:
        raise ValueError("Service type must be less than 50 characters")
    if not _SERVICE_TYPE.match(trimmed):
        raise ValueError("Service type contains invalid characters")
    return trimmed


def validate_location(location: str | None) -> str:
    """Location is optional; empty input normalizes to ''."""
    trimmed = (location or "").strip()
    if len(trimmed) > 100:
        raise ValueError("Location must be less than 100 characters")
    if trimmed and not _LOCATION.match(trimmed):
        raise ValueError("Location contains invalid characters")
    return trimmed
