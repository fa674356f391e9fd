"""Collision-resistant storage names."""

import secrets
import string
import time

from beartype import beartype

BASE36_ALPHABET = string.digits + string.ascii_lowercase
TOKEN_LENGTH = 13


def random_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


@beartype
def generate_filename(original_name: str) -> str:
    """Build ``{unix_millis}_{token}.{extension}`` from an original filename.

    The extension is whatever follows the last dot. A name without a dot keeps
    an empty extension, so the result ends in a bare ``.``. Uniqueness rests on
    the millisecond clock plus the random token; nothing checks the store.
    """
    _, dot, extension = original_name.rpartition(".")
    if not dot:
        extension = ""
    return f"{time.time_ns() // 1_000_000}_{random_token()}.{extension}"


def build_object_key(directory: str, filename: str) -> str:
    return f"{directory}/{filename}"
