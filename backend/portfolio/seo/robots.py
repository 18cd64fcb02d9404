"""robots.txt rendering."""

from portfolio.core.config import Settings

ROBOTS_CACHE_CONTROL = "public, max-age=86400"

DEFAULT_DISALLOW = (
    "/api/",
    "/_next/",
    "/favicon.ico",
    "/admin",
    "/admin/",
    "/login",
    "/dashboard",
    "/content",
    "/chat",
    "/chatbot",
)

AI_BOTS = ("GPTBot", "Google-Extended", "CCBot", "ClaudeBot")


def _site_origin(site_url: str | None) -> str | None:
    if not site_url or not site_url.strip().startswith("http"):
        return None
    return site_url.strip().rstrip("/")


def _extra_disallow(raw: str) -> list[str]:
    paths = []
    for part in raw.split(","):
        part = part.strip()
        if part:
            paths.append(part if part.startswith("/") else f"/{part}")
    return paths


def render_robots_txt(settings: Settings) -> str:
    lines = ["User-agent: *"]

    if not settings.robots_indexing:
        lines.append("Disallow: /")
    else:
        lines.append("Allow: /")
        lines.extend(f"Disallow: {path}" for path in DEFAULT_DISALLOW)
        lines.extend(f"Disallow: {path}" for path in _extra_disallow(settings.admin_robots_disallow))

    if settings.block_ai_bots:
        lines.append("")
        for bot in AI_BOTS:
            lines.append(f"User-agent: {bot}")
            lines.append("Disallow: /")

    origin = _site_origin(settings.site_url)
    if origin and settings.robots_indexing:
        sitemap_path = (settings.robots_sitemap_path or "").strip() or "/sitemap.xml"
        if not sitemap_path.startswith("/"):
            sitemap_path = f"/{sitemap_path}"
        lines.append("")
        lines.append(f"Sitemap: {origin}{sitemap_path}")

    return "\n".join(lines)
