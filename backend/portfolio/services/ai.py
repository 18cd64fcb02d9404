"""AI drafting helpers for the admin.

Drafts are never published automatically: blog drafts are returned to the
caller and README drafts are stored unapproved on the project. Without an
LLM key every helper returns a deterministic placeholder instead.
"""

import json
import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import UpstreamError, ValidationError
from portfolio.core.logging import get_logger, llm_logger
from portfolio.integrations.llm import LLMClient, get_llm_client
from portfolio.repositories.content import ProjectRepository
from portfolio.services.content import ProjectService
from portfolio.services.rag import embed_many
from portfolio.utils.slugify import slugify
from portfolio.utils.text import clamp_or_default
from portfolio.utils.validation import normalize_tags, safe_trim

logger = get_logger(__name__)

TONES = ("neutral", "casual", "professional", "technical")
MAX_EMBED_TEXTS = 100

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def normalize_tone(value: object) -> str:
    return value if value in TONES else "professional"


def _string_list(value: object, max_items: int, max_length: int) -> list[str]:
    if not isinstance(value, list):
        return []
    out = []
    for item in value:
        text = safe_trim(item, max_length).strip()
        if text:
            out.append(text)
        if len(out) >= max_items:
            break
    return out


def parse_json_reply(text: str) -> dict[str, Any] | None:
    """The first JSON object in a model reply, if any."""
    candidates = [text]
    match = _JSON_OBJECT.search(text)
    if match:
        candidates.append(match.group(0))
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def build_blog_prompt(
    topic: str,
    tone: str,
    keywords: list[str],
    goal: str = "",
    audience: str = "",
    outline: list[str] | None = None,
    max_words: int = 1200,
) -> str:
    structure = (
        "\n".join(f"{i}. {item}" for i, item in enumerate(outline, start=1))
        if outline
        else "Use a logical structure with headings and subheadings."
    )
    keyword_line = (
        f"SEO keywords to naturally include (no stuffing): {', '.join(keywords)}"
        if keywords
        else "SEO keywords: None provided."
    )
    return f"""You are an expert technical writer and SEO editor.

TASK:
Write a blog draft in Markdown about: "{topic}"

CONTEXT:
Goal: {goal or "Not specified"}
Audience: {audience or "General"}
Tone: {tone}
{keyword_line}

STRUCTURE:
{structure}

CONSTRAINTS:
- Target max words: {max_words}
- Use semantic headings (#, ##, ###).
- Be accurate and practical. No secrets or unsafe instructions.

Return ONLY valid JSON:
{{"title": "string", "excerpt": "1-2 lines", "tags": ["string"], "content": "full markdown"}}"""


def fallback_blog_outline(topic: str, keywords: list[str], outline: list[str] | None = None) -> str:
    headings = outline or ["Introduction", "Background", "Key ideas", "Practical example", "Conclusion"]
    lines = [f"# {topic}", ""]
    if keywords:
        lines += [f"_Keywords: {', '.join(keywords)}_", ""]
    for heading in headings:
        lines += [f"## {heading}", "", "_Write this section._", ""]
    lines.append("> Draft outline generated without AI. Configure an LLM API key for full drafts.")
    return "\n".join(lines)


def build_readme_prompt(project: dict[str, Any], tone: str, badges: bool) -> str:
    links = "\n".join(f"- {label}: {url}" for label, url in project["links"]) or "None provided"
    badge_line = "Include a small badges row at the top." if badges else "Do NOT include badges."
    return f"""You are an expert open-source maintainer and technical writer.

Write a README.md draft in Markdown for this project.

Title: {project["title"]}
Description: {project["description"] or "Not provided"}
Tone: {tone}
Tech stack: {", ".join(project["tech_stack"]) or "Not specified"}
Links:
{links}

Sections in order: title, short description, overview, features, tech stack,
getting started, usage, links, roadmap, license.
{badge_line}
No secrets. Draft only.

Return ONLY valid JSON: {{"content": "markdown"}}"""


def fallback_readme(project: dict[str, Any]) -> str:
    lines = [f"# {project['title']}", "", project["description"] or "Project description coming soon.", ""]
    lines += ["## Overview", "", project["summary"] or "_Summarize the project._", ""]
    lines += ["## Tech Stack", ""]
    lines += [f"- {tech}" for tech in project["tech_stack"]] or ["- Not specified"]
    lines += ["", "## Getting Started", "", "_Add setup instructions._", ""]
    if project["links"]:
        lines += ["## Links", ""] + [f"- [{label}]({url})" for label, url in project["links"]] + [""]
    lines += ["## License", "", "_Choose a license._"]
    return "\n".join(lines)


class AIService:
    @staticmethod
    async def blog_draft(
        topic: str | None,
        tone: object = None,
        keywords: object = None,
        goal: str | None = None,
        audience: str | None = None,
        outline: object = None,
        max_words: object = None,
        client: LLMClient | None = None,
    ) -> dict[str, Any]:
        """Markdown blog draft: title, slug, excerpt, content, tags, warnings."""
        topic = safe_trim(topic, 200).strip()
        if not topic:
            raise ValidationError("Missing required field: topic", field="topic")
        tone = normalize_tone(tone)
        keyword_list = _string_list(keywords, 20, 60)
        outline_list = _string_list(outline, 24, 120)
        words = int(clamp_or_default(max_words, 200, 4000, 1200))

        client = client or get_llm_client()
        warnings: list[str] = []
        if not client.available:
            llm_logger.graceful_fallback("ai.blog_draft", "LLM API key not configured")
            return {
                "title": topic[:140],
                "slug": slugify(topic) or "draft",
                "excerpt": f"Draft outline for {topic}.",
                "content": fallback_blog_outline(topic, keyword_list, outline_list),
                "tags": normalize_tags(keyword_list)[:12],
                "warnings": ["AI is not configured; returned a deterministic outline."],
                "used_llm": False,
            }

        prompt = build_blog_prompt(
            topic,
            tone,
            keyword_list,
            goal=safe_trim(goal, 240),
            audience=safe_trim(audience, 120),
            outline=outline_list,
            max_words=words,
        )
        result = await client.chat(
            [{"role": "user", "content": prompt}], temperature=0.7, max_tokens=2000
        )
        if not result.success or not result.text:
            raise UpstreamError(result.error or "AI provider returned an empty response")

        parsed = parse_json_reply(result.text)
        if parsed is None:
            warnings.append("Provider returned non-JSON output. Wrapped raw text into markdown.")
            parsed = {"content": f"# {topic}\n\n{result.text}"}

        title = safe_trim(parsed.get("title"), 140).strip() or topic[:140]
        content = safe_trim(parsed.get("content"), 100_000).strip()
        if not content:
            warnings.append("AI returned empty content. Using minimal fallback.")
            content = f"# {title}\n\nDraft content was not returned by the AI provider."
        tags = normalize_tags(_string_list(parsed.get("tags"), 12, 32) or keyword_list)[:12]
        return {
            "title": title,
            "slug": slugify(title) or slugify(topic) or "draft",
            "excerpt": safe_trim(parsed.get("excerpt"), 320).strip() or "Draft generated from provided inputs.",
            "content": content,
            "tags": tags,
            "warnings": warnings,
            "used_llm": True,
        }

    @staticmethod
    async def project_readme(
        db: AsyncSession,
        project_id: str,
        tone: object = None,
        badges: bool = False,
        client: LLMClient | None = None,
    ) -> dict[str, Any]:
        """Draft a README and store it unapproved on the project."""
        project = await ProjectService.get(db, project_id)
        info = {
            "title": project.title,
            "summary": project.summary or "",
            "description": project.description or project.summary or "",
            "tech_stack": list(project.tech_stack or []),
            "links": [
                (label, url)
                for label, url in (("Live", project.live_url), ("Source", project.repo_url))
                if url
            ],
        }

        client = client or get_llm_client()
        warnings: list[str] = []
        content = ""
        used_llm = False
        if client.available:
            result = await client.chat(
                [{"role": "user", "content": build_readme_prompt(info, normalize_tone(tone), badges)}],
                temperature=0.5,
                max_tokens=2000,
            )
            if not result.success or not result.text:
                raise UpstreamError(result.error or "AI provider returned an empty response")
            parsed = parse_json_reply(result.text)
            content = safe_trim((parsed or {}).get("content"), 100_000).strip() or result.text.strip()
            used_llm = True
        else:
            llm_logger.graceful_fallback("ai.project_readme", "LLM API key not configured")
            warnings.append("AI is not configured; returned a deterministic README skeleton.")
            content = fallback_readme(info)

        await ProjectRepository(db).update(project, ai_readme_draft=content, ai_readme_approved=False)
        logger.info(
            "README draft stored",
            extra={"project_id": project_id, "used_llm": used_llm, "length": len(content)},
        )
        return {
            "project_id": project_id,
            "slug": project.slug,
            "content": content,
            "warnings": warnings,
            "used_llm": used_llm,
        }

    @staticmethod
    async def embed(texts: object, client: LLMClient | None = None) -> dict[str, Any]:
        if not isinstance(texts, list) or not texts:
            raise ValidationError("Field 'texts' must be a non-empty array.", field="texts")
        if len(texts) > MAX_EMBED_TEXTS:
            raise ValidationError(
                f"At most {MAX_EMBED_TEXTS} texts per request.", field="texts"
            )
        if not all(isinstance(text, str) and text.strip() for text in texts):
            raise ValidationError("Every text must be a non-empty string.", field="texts")

        result = await embed_many(texts, client=client)
        if not result.success:
            raise UpstreamError(
                result.error or "Embedding request failed",
                unavailable=result.error == "Embeddings provider is not configured.",
            )
        return {
            "vectors": result.vectors,
            "count": len(result.vectors),
            "dimensions": len(result.vectors[0]) if result.vectors else 0,
        }
