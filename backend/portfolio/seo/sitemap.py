"""Sitemap building and XML rendering."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from xml.sax.saxutils import escape

from portfolio.seo.metadata import absolute_url, blog_path, normalize_path, project_path, section_path
from portfolio.utils.dates import ensure_utc

PRIORITY_HIGHEST = 1.0
PRIORITY_HIGH = 0.9
PRIORITY_MEDIUM = 0.7
PRIORITY_LOW = 0.5
PRIORITY_LOWEST = 0.3

CHANGE_FREQUENCIES = frozenset(
    {"always", "hourly", "daily", "weekly", "monthly", "yearly", "never"}
)

# (changefreq, priority)
RULE_HOME = ("weekly", PRIORITY_HIGHEST)
RULE_PROJECTS = ("weekly", PRIORITY_HIGH)
RULE_BLOGS = ("weekly", PRIORITY_HIGH)
RULE_CONTACT = ("monthly", PRIORITY_LOW)
RULE_RESUME = ("monthly", PRIORITY_LOW)
RULE_DEFAULT = ("monthly", PRIORITY_MEDIUM)

EXCLUDED_PREFIXES = ("/admin",)


@dataclass(frozen=True)
class SitemapItem:
    path: str
    last_modified: datetime | None = None
    change_frequency: str | None = None
    priority: float | None = None


@dataclass(frozen=True)
class SitemapEntry:
    url: str
    last_modified: datetime | None
    change_frequency: str | None
    priority: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "change_frequency": self.change_frequency,
            "priority": self.priority,
        }


STATIC_ENTRIES: tuple[SitemapItem, ...] = (
    SitemapItem("/", change_frequency="weekly", priority=1.0),
    SitemapItem("/projects", change_frequency="weekly", priority=0.9),
    SitemapItem("/blogs", change_frequency="weekly", priority=0.9),
    SitemapItem("/contact", change_frequency="monthly", priority=0.6),
    SitemapItem("/resume", change_frequency="monthly", priority=0.6),
)


def is_excluded_path(path: str) -> bool:
    path = normalize_path(path)
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in EXCLUDED_PREFIXES)


def resolve_default_rule(path: str) -> tuple[str, float]:
    path = normalize_path(path)
    if path == "/":
        return RULE_HOME
    if path == "/projects" or path.startswith("/project/"):
        return RULE_PROJECTS
    if path == "/blogs" or path.startswith("/blog/"):
        return RULE_BLOGS
    if path == "/contact":
        return RULE_CONTACT
    if path == "/resume":
        return RULE_RESUME
    return RULE_DEFAULT


def clamp_priority(value: float | None) -> float | None:
    if value is None:
        return None
    return min(1.0, max(0.0, float(value)))


def apply_defaults(item: SitemapItem) -> SitemapItem:
    change_frequency, priority = resolve_default_rule(item.path)
    return SitemapItem(
        path=normalize_path(item.path),
        last_modified=ensure_utc(item.last_modified),
        change_frequency=item.change_frequency
        if item.change_frequency in CHANGE_FREQUENCIES
        else change_frequency,
        priority=clamp_priority(item.priority if item.priority is not None else priority),
    )


def dedupe_by_path(items: Iterable[SitemapItem]) -> list[SitemapItem]:
    """Keep one item per path: the newer last_modified wins, ties go to the later item."""
    chosen: dict[str, SitemapItem] = {}
    for item in items:
        path = normalize_path(item.path)
        current = chosen.get(path)
        if current is None:
            chosen[path] = item
            continue
        current_ts = ensure_utc(current.last_modified)
        new_ts = ensure_utc(item.last_modified)
        if current_ts is None or (new_ts is not None and new_ts >= current_ts):
            chosen[path] = item
    return list(chosen.values())


def prepare_sitemap_inputs(items: Iterable[SitemapItem]) -> list[SitemapItem]:
    """Drop excluded paths, fill defaults and dedupe."""
    prepared = [apply_defaults(item) for item in items if not is_excluded_path(item.path)]
    return dedupe_by_path(prepared)


def build_sitemap(
    dynamic: Sequence[SitemapItem] = (), include_admin: bool = False
) -> list[SitemapEntry]:
    """Static entries plus `dynamic`, as absolute URLs deduped by URL."""
    items = [*STATIC_ENTRIES, *dynamic]
    if not include_admin:
        items = [item for item in items if not is_excluded_path(item.path)]

    entries: dict[str, SitemapEntry] = {}
    for item in items:
        url = absolute_url(normalize_path(item.path))
        entries[url] = SitemapEntry(
            url=url,
            last_modified=ensure_utc(item.last_modified),
            change_frequency=item.change_frequency,
            priority=clamp_priority(item.priority),
        )
    return list(entries.values())


def generate_sitemap(
    blogs: Iterable[Any] = (),
    projects: Iterable[Any] = (),
    sections: Iterable[Any] = (),
) -> list[SitemapEntry]:
    """Sitemap for published content rows (anything with slug and updated_at)."""
    dynamic: list[SitemapItem] = []
    for rows, to_path in (
        (blogs, blog_path),
        (projects, project_path),
        (sections, section_path),
    ):
        for row in rows:
            slug = getattr(row, "slug", None)
            if not slug:
                continue
            dynamic.append(
                apply_defaults(
                    SitemapItem(to_path(slug), getattr(row, "updated_at", None))
                )
            )
    return build_sitemap(prepare_sitemap_inputs(dynamic))


def render_sitemap_xml(entries: Iterable[SitemapEntry]) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for entry in entries:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(entry.url)}</loc>")
        if entry.last_modified:
            lines.append(f"    <lastmod>{entry.last_modified.isoformat()}</lastmod>")
        if entry.change_frequency:
            lines.append(f"    <changefreq>{entry.change_frequency}</changefreq>")
        if entry.priority is not None:
            lines.append(f"    <priority>{entry.priority:.1f}</priority>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"
