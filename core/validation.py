# core/validation.py
from typing import Dict, List

MIN_FIELD_LENGTH = 6


def validate_login_input(data: Dict[str, str]) -> List[str]:
    """
    Check a login form before it reaches the backend.
    Returns error messages in display order; empty means valid.
    """
    errors: List[str] = []
    if not data.get("username", ""):
        errors.append("Username is a required field")
    if not data.get("password", ""):
        errors.append("Password is a required field")
    return errors


def validate_register_input(data: Dict[str, str]) -> List[str]:
    """
    Check a registration form: username and password are required and at least
    MIN_FIELD_LENGTH characters, and the confirmation must match the password.
    """
    username = data.get("username", "")
    password = data.get("password", "")
    confirm = data.get("confirmPassword", "")

    errors: List[str] = []
    if not username:
        errors.append("Username is a required field")
    elif len(username) < MIN_FIELD_LENGTH:
        errors.append(f"Username must be at least {MIN_FIELD_LENGTH} characters")

    if not password:
        errors.append("Password is a required field")
    elif len(password) < MIN_FIELD_LENGTH:
        errors.append(f"Password must be at least {MIN_FIELD_LENGTH} characters")

    if password != confirm:
        errors.append("Passwords do not match")
    return errors
