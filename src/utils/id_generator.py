"""ID generation utilities."""

import secrets
import string


def generate_nanoid(length: int = 21) -> str:
    """
    Generate a nanoid-style ID.

    Args:
        length: Length of the ID to generate

    Returns:
        A string ID matching /^[A-Za-z0-9_-]+$/
    """
    alphabet = string.ascii_letters + string.digits + "_-"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_request_id() -> str:
    """Generate a request ID for log correlation and error tracking."""
    return generate_nanoid(21)
