"""Shareable Slugs — public link keys for workshop templates.

Invariants:
    - slugify is PURE and deterministic; randomness is passed in as `suffix`
    - Output contains only [a-z0-9-]
"""

import re
import secrets
import string

SLUG_SUFFIX_LENGTH: int = 5
BASE36_ALPHABET = string.digits + string.ascii_lowercase

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase title with every run of non-alphanumerics collapsed to one '-'."""
    return _NON_ALNUM.sub("-", title.lower()).strip("-")


def random_suffix(length: int = SLUG_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def shareable_slug(title: str, suffix: str | None = None) -> str:
    """`<slugified-title>-<suffix>`; falls back to 'workshop' for symbol-only titles."""
    base = slugify(title) or "workshop"
    return f"{base}-{suffix or random_suffix()}"
