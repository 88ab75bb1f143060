"""Master password policy checks performed before a vault is created.

These are caller-level checks: the session re-checks the minimum length,
but the confirmation comparison only happens here.
"""

import re

from .exceptions import PasswordMismatchError, WeakPasswordError

MIN_PASSWORD_LENGTH = 12
MAX_STRENGTH_SCORE = 5

STRENGTH_LABELS = {
    0: "very weak",
    1: "very weak",
    2: "weak",
    3: "fair",
    4: "strong",
    5: "very strong",
}


def check_password_length(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> None:
    """Raise WeakPasswordError if the password is too short."""
    if len(password) < min_length:
        raise WeakPasswordError(min_length)


def validate_new_password(
    password: str,
    confirmation: str,
    min_length: int = MIN_PASSWORD_LENGTH,
) -> None:
    """
    Validate a new master password and its confirmation.

    Args:
        password: Proposed master password
        confirmation: Second entry of the password
        min_length: Minimum number of characters

    Raises:
        WeakPasswordError: If the password is too short
        PasswordMismatchError: If the two entries differ
    """
    check_password_length(password, min_length)
    if password != confirmation:
        raise PasswordMismatchError()


def password_strength(password: str) -> int:
    """
    Score a password from 0 to 5.

    One point each for: at least 12 characters, at least 16 characters,
    mixed case, a digit, a non-alphanumeric character.
    """
    score = 0
    if len(password) >= 12:
        score += 1
    if len(password) >= 16:
        score += 1
    if re.search(r"[a-z]", password) and re.search(r"[A-Z]", password):
        score += 1
    if re.search(r"\d", password):
        score += 1
    if re.search(r"[^a-zA-Z0-9]", password):
        score += 1
    return score


def strength_label(password: str) -> str:
    """Human readable label for ``password_strength``."""
    return STRENGTH_LABELS[password_strength(password)]
