"""accounts/display.py -- Public-facing names derived from an email address.

Pure and memoized. Presentation layers use this to show who someone is
without printing their full address; the store never calls it.
"""

from __future__ import annotations

import hashlib
from functools import lru_cache

from accounts.models import DisplayName

SHORT_HASH_LENGTH = 7


@lru_cache(maxsize=4096)
def derive_display_name(email: str) -> DisplayName:
    local_part = email.split("@", 1)[0]
    short_hash = hashlib.sha256(email.encode("utf-8")).hexdigest()[:SHORT_HASH_LENGTH]
    masked = local_part[:1] + "*" * max(len(local_part) - 1, 0)
    return DisplayName(
        email=email,
        local_part=local_part,
        short_hash=short_hash,
        plain_tag=f"{local_part}#{short_hash}",
        obfuscated_tag=f"{masked}#{short_hash}",
    )
