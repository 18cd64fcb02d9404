"""schema.org JSON-LD builders.

Keys whose value is None are dropped so the output only carries what
is known.
"""

import json
from collections.abc import Sequence
from typing import Any

from portfolio.core.config import get_settings
from portfolio.seo.metadata import DEFAULT_DESCRIPTION, absolute_url, resolve_image

JsonLd = dict[str, Any] | list[dict[str, Any]]

SCHEMA_CONTEXT = "https://schema.org"


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def build_website_json_ld() -> dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "WebSite",
        "name": get_settings().site_name,
        "url": absolute_url("/"),
        "description": DEFAULT_DESCRIPTION,
    }


def build_person_json_ld(
    name: str,
    job_title: str | None = None,
    description: str | None = None,
    image: str | None = None,
    url: str | None = None,
    same_as: Sequence[str] | None = None,
    email: str | None = None,
    location: str | None = None,
) -> dict[str, Any]:
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Person",
            "name": name,
            "jobTitle": job_title,
            "description": description,
            "image": resolve_image(image),
            "url": absolute_url(url or "/"),
            "sameAs": list(same_as) if same_as else None,
            "email": email,
            "homeLocation": {"@type": "Place", "name": location} if location else None,
        }
    )


def build_article_json_ld(
    title: str,
    description: str,
    url: str,
    date_published: str,
    author_name: str,
    image: str | None = None,
    date_modified: str | None = None,
    tags: Sequence[str] | None = None,
) -> dict[str, Any]:
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Article",
            "headline": title,
            "description": description,
            "image": [resolve_image(image)],
            "mainEntityOfPage": absolute_url(url),
            "datePublished": date_published,
            "dateModified": date_modified or date_published,
            "author": {"@type": "Person", "name": author_name},
            "publisher": {
                "@type": "Organization",
                "name": get_settings().site_name,
                "url": absolute_url("/"),
            },
            "keywords": list(tags) if tags else None,
        }
    )


def build_project_json_ld(
    name: str,
    description: str,
    url: str,
    image: str | None = None,
    date_created: str | None = None,
    date_modified: str | None = None,
    keywords: Sequence[str] | None = None,
    code_repository: str | None = None,
    live_demo_url: str | None = None,
) -> dict[str, Any]:
    return _compact(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "CreativeWork",
            "name": name,
            "description": description,
            "url": absolute_url(url),
            "image": resolve_image(image),
            "dateCreated": date_created,
            "dateModified": date_modified or date_created,
            "keywords": list(keywords) if keywords else None,
            "codeRepository": code_repository,
            "sameAs": live_demo_url,
        }
    )


def build_breadcrumb_json_ld(items: Sequence[tuple[str, str]]) -> dict[str, Any]:
    """Breadcrumb list from (name, path_or_url) pairs; positions start at 1."""
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": index,
                "name": name,
                "item": absolute_url(url),
            }
            for index, (name, url) in enumerate(items, start=1)
        ],
    }


def combine_json_ld(items: Sequence[JsonLd]) -> list[dict[str, Any]]:
    flattened: list[dict[str, Any]] = []
    for item in items:
        if isinstance(item, list):
            flattened.extend(item)
        else:
            flattened.append(item)
    return flattened


def to_json_ld_string(data: JsonLd) -> str:
    """Serialize for a <script> tag; '<' is escaped so '</script>' cannot appear."""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).replace(
        "<", "\\u003c"
    )
