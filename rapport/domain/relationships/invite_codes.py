"""Invite code generation."""
import secrets
import string

INVITE_CODE_ALPHABET = string.ascii_letters + string.digits
DEFAULT_INVITE_CODE_LENGTH = 10


def normalize_invite_code(code: str) -> str:
    """Canonical stored form: stripped and upper-cased."""
    return code.strip().upper()


def generate_invite_code(length: int = DEFAULT_INVITE_CODE_LENGTH) -> str:
    """Generate a random invite code in its normalized form."""
    raw = "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))
    return normalize_invite_code(raw)
