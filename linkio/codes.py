import secrets
import string

from .errors import RandomSourceUnavailable

ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 6


def generate_code(length: int = CODE_LENGTH) -> str:
    try:
        return "".join(secrets.choice(ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as exc:
        raise RandomSourceUnavailable("secure random source unavailable") from exc
