"""Page metadata builders: title, description, canonical URL, robots,
Open Graph and Twitter card.

Output is a plain dict the frontend maps onto its <head> tags.
"""

from collections.abc import Sequence
from typing import Any

from portfolio.core.config import get_settings

DEFAULT_TITLE = "Parnish – AI Engineer & Full Stack Developer"
TITLE_TEMPLATE = "%s | Parnish"
DEFAULT_DESCRIPTION = (
    "Building intelligent, scalable, and visually immersive digital products."
)
DEFAULT_OG_IMAGE = "/og.png"
OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630

NOINDEX_PREFIXES = ("/admin",)


def blog_path(slug: str) -> str:
    return f"/blog/{slug}"


def project_path(slug: str) -> str:
    return f"/project/{slug}"


def section_path(slug: str) -> str:
    return f"/{slug}"


def normalize_base_url(url: str | None) -> str:
    if not url:
        return "http://localhost:3000"
    return url[:-1] if url.endswith("/") else url


def normalize_path(path: str | None) -> str:
    if not path:
        return "/"
    return path if path.startswith("/") else f"/{path}"


def absolute_url(path_or_url: str | None) -> str:
    """Absolute URL on the public site; http(s) URLs pass through."""
    base = normalize_base_url(get_settings().site_url)
    if not path_or_url:
        return base
    if path_or_url.startswith("http"):
        return path_or_url
    return f"{base}{normalize_path(path_or_url)}"


def canonical_url_for_path(path: str | None) -> str:
    return absolute_url(normalize_path(path))


def is_noindex_path(path: str | None) -> bool:
    path = normalize_path(path)
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in NOINDEX_PREFIXES)


def resolve_title(title: str | None) -> str:
    raw = (title or "").strip()
    return TITLE_TEMPLATE.replace("%s", raw) if raw else DEFAULT_TITLE


def resolve_description(description: str | None) -> str:
    raw = (description or "").strip()
    return raw or DEFAULT_DESCRIPTION


def resolve_image(image: str | None) -> str:
    raw = (image or "").strip()
    return absolute_url(raw) if raw else absolute_url(DEFAULT_OG_IMAGE)


def resolve_path(
    path: str | None = None,
    blog_slug: str | None = None,
    project_slug: str | None = None,
    section_slug: str | None = None,
) -> str:
    if path:
        return path
    if blog_slug:
        return blog_path(blog_slug)
    if project_slug:
        return project_path(project_slug)
    if section_slug:
        return section_path(section_slug)
    return "/"


def build_open_graph(
    title: str,
    description: str,
    url: str,
    image: str,
    og_type: str = "website",
    published_time: str | None = None,
    modified_time: str | None = None,
    authors: Sequence[str] | None = None,
    tags: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Open Graph block. Articles also carry times, authors and tags."""
    settings = get_settings()
    graph: dict[str, Any] = {
        "type": og_type,
        "site_name": settings.site_name,
        "title": title,
        "description": description,
        "url": url,
        "images": [
            {
                "url": image,
                "width": OG_IMAGE_WIDTH,
                "height": OG_IMAGE_HEIGHT,
                "alt": title,
            }
        ],
        "locale": settings.site_locale,
    }
    if og_type == "article":
        if published_time:
            graph["published_time"] = published_time
        if modified_time or published_time:
            graph["modified_time"] = modified_time or published_time
        if authors:
            graph["authors"] = list(authors)
        if tags:
            graph["tags"] = list(tags)
    return graph


def build_twitter_card(
    title: str, description: str, image: str, creator: str | None = None
) -> dict[str, Any]:
    card: dict[str, Any] = {
        "card": "summary_large_image",
        "title": title,
        "description": description,
        "images": [image],
    }
    if creator:
        card["creator"] = creator
    return card


def create_metadata(
    title: str | None = None,
    description: str | None = None,
    path: str | None = None,
    image: str | None = None,
    noindex: bool = False,
    keywords: Sequence[str] | None = None,
    blog_slug: str | None = None,
    project_slug: str | None = None,
    section_slug: str | None = None,
    og_type: str = "website",
    published_time: str | None = None,
    modified_time: str | None = None,
    tags: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Full metadata block for one public page."""
    settings = get_settings()
    resolved_path = resolve_path(path, blog_slug, project_slug, section_slug)
    resolved_title = resolve_title(title)
    resolved_description = resolve_description(description)
    canonical = canonical_url_for_path(resolved_path)
    resolved_image = resolve_image(image)

    metadata: dict[str, Any] = {
        "title": resolved_title,
        "description": resolved_description,
        "canonical": canonical,
        "robots": {"index": not noindex, "follow": not noindex},
        "application_name": settings.site_name,
        "open_graph": build_open_graph(
            resolved_title,
            resolved_description,
            canonical,
            resolved_image,
            og_type=og_type,
            published_time=published_time,
            modified_time=modified_time,
            tags=tags,
        ),
        "twitter": build_twitter_card(
            resolved_title, resolved_description, resolved_image
        ),
    }
    if keywords:
        metadata["keywords"] = list(keywords)
    return metadata


def create_blog_metadata(blog_slug: str, **kwargs: Any) -> dict[str, Any]:
    kwargs.pop("path", None)
    return create_metadata(blog_slug=blog_slug, **kwargs)


def create_project_metadata(project_slug: str, **kwargs: Any) -> dict[str, Any]:
    kwargs.pop("path", None)
    return create_metadata(project_slug=project_slug, **kwargs)


def create_section_metadata(section_slug: str, **kwargs: Any) -> dict[str, Any]:
    kwargs.pop("path", None)
    return create_metadata(section_slug=section_slug, **kwargs)


def create_admin_metadata(title: str | None = None) -> dict[str, Any]:
    return create_metadata(
        title=f"{title} (Admin)" if title else "Admin",
        description="Admin area",
        path="/admin",
        noindex=True,
    )
