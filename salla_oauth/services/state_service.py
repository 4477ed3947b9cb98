"""
OAuth ``state`` values.

A fresh value is minted for every authorization redirect and checked
once on the matching callback.
"""
import secrets
import string

STATE_ALPHABET = string.ascii_letters + string.digits


def generate_state(length: int = 16) -> str:
    """Return ``length`` characters drawn from [A-Za-z0-9] with a CSPRNG."""
    if length < 1:
        raise ValueError("state length must be positive")
    return "".join(secrets.choice(STATE_ALPHABET) for _ in range(length))


def states_match(expected: str | None, received: str | None) -> bool:
    """Constant-time comparison; a missing value on either side never matches."""
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode(), received.encode())
