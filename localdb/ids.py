from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any, Callable

from .errors import KeyGenerationExhausted

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase
KEY_ALPHABET = string.ascii_letters + string.digits

DEFAULT_KEY_LENGTH = 30
DEFAULT_MAX_ATTEMPTS = 10


def new_id() -> str:
    """
    Opaque internal document id: "<epoch-millis>-<13 random base36 chars>".

    Only internal ids come from here. Natural keys (userId, vocabularyId,
    couponId) are generated by callers with generate_unique_key().
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(13))
    return f"{millis}-{suffix}"


def random_key(length: int = DEFAULT_KEY_LENGTH, alphabet: str = KEY_ALPHABET) -> str:
    if length < 1:
        raise ValueError("length must be >= 1")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_unique_key(
    exists: Callable[[str], bool],
    *,
    length: int = DEFAULT_KEY_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    alphabet: str = KEY_ALPHABET,
) -> str:
    """
    Generate candidate keys until `exists(candidate)` is False.

    The store does not enforce natural-key uniqueness; this generate-and-check
    loop is the caller-side contract. Raises KeyGenerationExhausted after
    `max_attempts` collisions.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = random_key(length, alphabet)
        if not exists(candidate):
            return candidate
        logger.debug("natural key collision on attempt %d", attempt)
    raise KeyGenerationExhausted(max_attempts)


def unique_key_for(collection: Any, field: str, **kwargs: Any) -> str:
    """
    generate_unique_key() against a facade collection, e.g.

        user_id = unique_key_for(client.user, "userId")
        client.user.create(data={"userId": user_id, ...})

    The check and the create are separate calls, so two concurrent callers can
    still pick the same key; collisions are vanishingly rare at the default
    key length.
    """
    return generate_unique_key(
        lambda candidate: collection.find_unique(where={field: candidate}) is not None,
        **kwargs,
    )
