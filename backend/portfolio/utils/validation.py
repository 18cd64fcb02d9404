"""Input validation and normalization.

Validators take plain dicts (already parsed by the API schemas), return a
normalized dict and raise ValidationError with a per-field `errors` map
when anything is wrong.
"""

import math
import re
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from portfolio.core.exceptions import ValidationError
from portfolio.utils.slugify import SLUG_PATTERN, slugify

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z?$")

VALID_STATUSES = frozenset({"draft", "published", "archived"})

BLOG_LIMITS = {
    "title": 140,
    "slug": 180,
    "excerpt": 320,
    "seo_title": 70,
    "seo_description": 160,
    "tags": 12,
    "tag_length": 32,
}

PROJECT_LIMITS = {
    "title": 140,
    "slug": 180,
    "summary": 300,
    "tech_stack": 20,
    "tags": 12,
    "tag_length": 32,
    "gallery": 12,
}

CONTACT_LIMITS = {
    "name": 80,
    "email": 254,
    "subject": 140,
    "message_min": 10,
    "message": 4000,
    "phone": 30,
    "company": 80,
    "website": 2048,
    "budget": 60,
    "timeline": 60,
    "source": 80,
}

WORDS_PER_MINUTE = 200


def is_valid_email(value: object) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_valid_slug(value: object) -> bool:
    return isinstance(value, str) and bool(SLUG_PATTERN.match(value))


def is_valid_iso_datetime(value: object) -> bool:
    return isinstance(value, str) and bool(ISO_DATETIME_PATTERN.match(value))


def is_valid_url(value: object) -> bool:
    """http(s) URL with a host."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_site_relative_path(value: object) -> bool:
    return (
        isinstance(value, str)
        and value.startswith("/")
        and not value.startswith("//")
        and "\r" not in value
        and "\n" not in value
    )


def safe_trim(value: object, max_length: int) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length]


def normalize_whitespace(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())


def normalize_tags(tags: object, max_tag_length: int = 32) -> list[str]:
    """Lowercase, collapse whitespace, clip and dedupe, preserving order."""
    if not isinstance(tags, list | tuple):
        return []
    out: list[str] = []
    for raw in tags:
        cleaned = normalize_whitespace(raw).lower()[:max_tag_length]
        if cleaned and cleaned not in out:
            out.append(cleaned)
    return out


def _raise_if(errors: dict[str, str]) -> None:
    if errors:
        field, message = next(iter(errors.items()))
        raise ValidationError(message, field=field, errors=errors)


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not is_valid_iso_datetime(value):
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


# Auth


def validate_login(
    email: object,
    password: object,
    min_length: int = 8,
    max_length: int = 72,
    require_upper: bool = False,
    require_lower: bool = False,
    require_number: bool = False,
    require_symbol: bool = False,
) -> tuple[str, str]:
    """Return (normalized_email, password) or raise ValidationError."""
    errors: dict[str, str] = {}
    normalized_email = email.strip().lower() if isinstance(email, str) else ""
    raw_password = password if isinstance(password, str) else ""

    if not normalized_email:
        errors["email"] = "Email is required."
    elif not is_valid_email(normalized_email):
        errors["email"] = "Please enter a valid email address."

    if not raw_password:
        errors["password"] = "Password is required."
    elif len(raw_password) < min_length:
        errors["password"] = f"Password must be at least {min_length} characters."
    elif len(raw_password) > max_length:
        errors["password"] = f"Password must be at most {max_length} characters."
    elif require_upper and not re.search(r"[A-Z]", raw_password):
        errors["password"] = "Password must include at least one uppercase letter."
    elif require_lower and not re.search(r"[a-z]", raw_password):
        errors["password"] = "Password must include at least one lowercase letter."
    elif require_number and not re.search(r"\d", raw_password):
        errors["password"] = "Password must include at least one number."
    elif require_symbol and not re.search(r"[^A-Za-z0-9]", raw_password):
        errors["password"] = "Password must include at least one symbol."

    _raise_if(errors)
    return normalized_email, raw_password


# Blogs


def estimate_reading_time(content: str) -> int:
    words = len(content.split())
    return min(180, max(1, math.ceil(words / WORDS_PER_MINUTE)))


def validate_blog_input(
    data: dict[str, Any], partial: bool = False, now: datetime | None = None
) -> dict[str, Any]:
    """Normalize blog fields.

    With partial=True only the keys present in `data` are validated and
    returned (PATCH semantics).
    """
    limits = BLOG_LIMITS
    errors: dict[str, str] = {}
    out: dict[str, Any] = {}
    now = now or datetime.now(UTC)

    def present(key: str) -> bool:
        return not partial or key in data

    if present("title"):
        title = normalize_whitespace(data.get("title"))
        if not title:
            errors["title"] = "Title is required."
        elif len(title) > limits["title"]:
            errors["title"] = f"Title must be at most {limits['title']} characters."
        out["title"] = title

    if present("slug") or (not partial and "title" in out):
        slug_input = normalize_whitespace(data.get("slug"))
        slug = slugify(slug_input, max_length=200) if slug_input else slugify(out.get("title", ""), max_length=200)
        slug = slug[: limits["slug"]].strip("-")
        if not slug:
            errors["slug"] = "Slug is required (and could not be derived from title)."
        out["slug"] = slug

    if "content" in data or not partial:
        content = data.get("content")
        out["content"] = content if isinstance(content, str) else ""

    if present("excerpt"):
        excerpt = normalize_whitespace(data.get("excerpt"))
        if len(excerpt) > limits["excerpt"]:
            errors["excerpt"] = f"Excerpt must be at most {limits['excerpt']} characters."
        out["excerpt"] = excerpt or None

    if present("cover_image"):
        out["cover_image"] = normalize_whitespace(data.get("cover_image")) or None

    if present("tags"):
        tags = normalize_tags(data.get("tags"), limits["tag_length"])
        if len(tags) > limits["tags"]:
            errors["tags"] = f"You can add at most {limits['tags']} tags."
        out["tags"] = tags

    for key, label in (("seo_title", "seoTitle"), ("seo_description", "seoDescription")):
        if present(key):
            value = normalize_whitespace(data.get(key))
            if len(value) > limits[key]:
                errors[key] = f"{label} must be at most {limits[key]} characters."
            out[key] = value or None

    if present("status"):
        status = data.get("status")
        out["status"] = status if status in VALID_STATUSES else "draft"

    if present("published_at"):
        out["published_at"] = _parse_datetime(data.get("published_at"))
    if out.get("status") == "published" and out.get("published_at") is None:
        out["published_at"] = now

    if "status" in out:
        out["is_published"] = out["status"] == "published"

    if present("reading_time"):
        raw = data.get("reading_time")
        if raw is None:
            if "content" in out:
                out["reading_time"] = estimate_reading_time(out["content"])
        elif isinstance(raw, bool) or not isinstance(raw, int | float):
            errors["reading_time"] = "readingTimeMinutes must be a number."
        else:
            out["reading_time"] = min(180, max(1, int(raw))) if math.isfinite(raw) else 1

    _raise_if(errors)
    return out


# Projects


def validate_project_input(data: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    limits = PROJECT_LIMITS
    errors: dict[str, str] = {}
    out: dict[str, Any] = {}

    def present(key: str) -> bool:
        return not partial or key in data

    if present("title"):
        title = normalize_whitespace(data.get("title"))
        if not title:
            errors["title"] = "Title is required."
        elif len(title) > limits["title"]:
            errors["title"] = f"Title must be at most {limits['title']} characters."
        out["title"] = title

    if present("slug") or (not partial and "title" in out):
        slug_input = normalize_whitespace(data.get("slug"))
        slug = slugify(slug_input or out.get("title", ""), max_length=200)
        slug = slug[: limits["slug"]].strip("-")
        if not slug:
            errors["slug"] = "Slug is required (and could not be derived from title)."
        out["slug"] = slug

    if present("summary"):
        out["summary"] = normalize_whitespace(data.get("summary"))[: limits["summary"]] or None

    if present("description"):
        description = data.get("description")
        out["description"] = description.strip() if isinstance(description, str) else None

    for key, label in (
        ("cover_image", "coverImageUrl"),
        ("live_url", "liveUrl"),
        ("repo_url", "repoUrl"),
    ):
        if present(key):
            value = normalize_whitespace(data.get(key))
            if value and not is_valid_url(value):
                errors[key] = f"{label} must be a valid URL."
            out[key] = value or None

    if present("gallery"):
        raw_gallery = data.get("gallery")
        gallery = [
            normalize_whitespace(item)
            for item in (raw_gallery if isinstance(raw_gallery, list) else [])
            if normalize_whitespace(item)
        ]
        if len(gallery) > limits["gallery"]:
            errors["gallery"] = f"You can add at most {limits['gallery']} gallery images."
        out["gallery"] = gallery

    if present("tech_stack"):
        raw_stack = data.get("tech_stack")
        stack: list[str] = []
        for item in raw_stack if isinstance(raw_stack, list) else []:
            cleaned = normalize_whitespace(item)
            if cleaned and cleaned not in stack:
                stack.append(cleaned)
        if len(stack) > limits["tech_stack"]:
            errors["tech_stack"] = f"You can add at most {limits['tech_stack']} technologies."
        out["tech_stack"] = stack

    if present("tags"):
        tags = normalize_tags(data.get("tags"), limits["tag_length"])
        if len(tags) > limits["tags"]:
            errors["tags"] = f"You can add at most {limits['tags']} tags."
        out["tags"] = tags

    if present("status"):
        status = data.get("status")
        out["status"] = status if status in VALID_STATUSES else "draft"

    for key in ("is_featured", "is_published"):
        if key in data and isinstance(data[key], bool):
            out[key] = data[key]

    if "section_slug" in data:
        out["section_slug"] = slugify(data.get("section_slug")) or None

    if "order_index" in data and isinstance(data["order_index"], int):
        out["order_index"] = data["order_index"]

    _raise_if(errors)
    return out


# Contact


def validate_contact_input(data: dict[str, Any]) -> dict[str, Any]:
    limits = CONTACT_LIMITS
    errors: dict[str, str] = {}

    name = normalize_whitespace(data.get("name"))
    email = normalize_whitespace(data.get("email")).lower()
    subject = normalize_whitespace(data.get("subject"))
    message = data.get("message").strip() if isinstance(data.get("message"), str) else ""

    if not name:
        errors["name"] = "Name is required."
    elif len(name) > limits["name"]:
        errors["name"] = f"Name must be at most {limits['name']} characters."

    if not email:
        errors["email"] = "Email is required."
    elif len(email) > limits["email"]:
        errors["email"] = f"Email must be at most {limits['email']} characters."
    elif not is_valid_email(email):
        errors["email"] = "Please enter a valid email address."

    if len(subject) > limits["subject"]:
        errors["subject"] = f"Subject must be at most {limits['subject']} characters."

    if not message:
        errors["message"] = "Message is required."
    elif len(message) < limits["message_min"]:
        errors["message"] = f"Message must be at least {limits['message_min']} characters."
    elif len(message) > limits["message"]:
        errors["message"] = f"Message must be at most {limits['message']} characters."

    optional: dict[str, str | None] = {}
    for key in ("phone", "company", "budget", "timeline", "source"):
        value = normalize_whitespace(data.get(key))
        if len(value) > limits[key]:
            errors[key] = f"{key.capitalize()} must be at most {limits[key]} characters."
        optional[key] = value or None

    website = normalize_whitespace(data.get("website"))
    if website:
        if len(website) > limits["website"]:
            errors["website"] = f"Website must be at most {limits['website']} characters."
        elif not is_valid_url(website):
            errors["website"] = "Website must be a valid URL (include https://)."

    _raise_if(errors)
    return {
        "name": name,
        "email": email,
        "subject": subject or None,
        "message": message,
        "website": website or None,
        **optional,
    }


# General


def validate_pagination(
    page: object = None, limit: object = None, default_limit: int = 10, max_limit: int = 100
) -> tuple[int, int]:
    """Return (page, limit). Non-numeric input falls back to defaults."""

    def as_int(value: object, default: int) -> int:
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        return default

    page_value = max(1, as_int(page, 1))
    limit_value = min(max_limit, max(1, as_int(limit, default_limit)))
    return page_value, limit_value


def validate_sort(
    sort: object, order: object, allowed: frozenset[str], default_sort: str
) -> tuple[str, str]:
    field = sort if isinstance(sort, str) and sort in allowed else default_sort
    direction = order if order in ("asc", "desc") else "desc"
    return field, direction


def validate_status(value: object, allowed: frozenset[str] = VALID_STATUSES) -> str | None:
    if value is None or value == "":
        return None
    if value not in allowed:
        raise ValidationError(
            f"Status must be one of: {', '.join(sorted(allowed))}.",
            field="status",
            value=value,
        )
    return str(value)


def validate_optional_url(value: object, field_name: str = "url") -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not is_valid_url(value):
        raise ValidationError(
            f"{field_name} must be a valid URL.", field=field_name, value=value
        )
    return value.strip()
