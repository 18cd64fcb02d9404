"""URL slug helpers."""

import re
import unicodedata

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(
    value: object,
    lowercase: bool = True,
    max_length: int = 80,
    allow_unicode: bool = False,
    replacement: str = "-",
) -> str:
    """Turn arbitrary text into a URL slug.

    Accents are stripped (unless allow_unicode), anything outside
    [a-z0-9-] becomes `replacement`, runs of the replacement collapse
    and the result is cut to max_length (clamped to 10..200).
    """
    if not isinstance(value, str) or not value:
        return ""

    max_length = min(max(max_length, 10), 200)
    sep = re.escape(replacement)

    text = unicodedata.normalize("NFKD", value)
    if not allow_unicode:
        text = "".join(ch for ch in text if not unicodedata.combining(ch))
    if lowercase:
        text = text.lower()

    text = re.sub(r"[\s_]+", replacement, text)
    if allow_unicode:
        text = re.sub(rf"[^\w{sep}]+", replacement, text, flags=re.UNICODE)
    else:
        allowed = "a-z0-9" if lowercase else "a-zA-Z0-9"
        text = re.sub(rf"[^{allowed}{sep}]+", replacement, text)

    if replacement:
        text = re.sub(rf"(?:{sep})+", replacement, text)
        text = text.strip(replacement)
        text = text[:max_length].strip(replacement)
    else:
        text = text[:max_length]
    return text


def ensure_slug(value: object, fallback: str = "untitled") -> str:
    """Slug of `value`, else slug of `fallback`, else "untitled"."""
    return slugify(value) or slugify(fallback) or "untitled"


def is_valid_slug(value: object) -> bool:
    return isinstance(value, str) and bool(SLUG_PATTERN.match(value))
