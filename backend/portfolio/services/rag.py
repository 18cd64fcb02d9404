"""Retrieval helpers for the chatbot.

There is no vector database: documents are chunked in memory, embedded
through the LLM client and ranked by cosine similarity.
"""

import math
import re
from dataclasses import asdict, dataclass, field, replace
from typing import Any

from portfolio.core.logging import get_logger, llm_logger
from portfolio.integrations.llm import LLMClient, get_llm_client
from portfolio.utils.text import clamp, truncate

logger = get_logger(__name__)

CHUNK_SEPARATOR = "::chunk::"


@dataclass
class RagChunk:
    id: str
    document_id: str
    chunk_index: int
    content: str
    title: str = ""
    source_type: str | None = None
    source_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class EmbedManyResult:
    success: bool
    vectors: list[list[float]] = field(default_factory=list)
    error: str | None = None


def normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def make_chunk_id(document_id: str, index: int) -> str:
    return f"{document_id}{CHUNK_SEPARATOR}{index}"


def parse_chunk_id(chunk_id: str) -> tuple[str, int]:
    """Split a chunk id into (document_id, index); ("", -1) when malformed."""
    parts = chunk_id.split(CHUNK_SEPARATOR)
    if len(parts) != 2:
        return "", -1
    try:
        return parts[0], int(parts[1])
    except ValueError:
        return parts[0], -1


def _split_points(text: str, size: int, overlap: int) -> list[tuple[int, int]]:
    spans = []
    start = 0
    while start < len(text):
        end = min(start + size, len(text))
        if end < len(text):
            # Prefer a whitespace boundary in the last 20% of the window
            floor = start + int(size * 0.8)
            boundary = max(text.rfind(" ", floor, end), text.rfind("\n", floor, end))
            if boundary > start:
                end = boundary
        spans.append((start, end))
        if end >= len(text):
            break
        start = max(end - overlap, start + 1)
    return spans


def chunk_text(
    document_id: str,
    text: str,
    chunk_size: int = 900,
    overlap: int = 150,
    metadata: dict[str, Any] | None = None,
) -> list[RagChunk]:
    size = int(clamp(chunk_size, 200, 4000))
    overlap = int(clamp(overlap, 0, size - 1))
    cleaned = normalize_whitespace(text or "")
    if not cleaned:
        return []

    metadata = dict(metadata or {})
    chunks = []
    for index, (start, end) in enumerate(_split_points(cleaned, size, overlap)):
        content = cleaned[start:end].strip()
        if not content:
            continue
        chunks.append(
            RagChunk(
                id=make_chunk_id(document_id, index),
                document_id=document_id,
                chunk_index=index,
                content=content,
                title=str(metadata.get("title", "")),
                source_type=metadata.get("type"),
                source_url=metadata.get("url"),
                metadata=metadata,
            )
        )
    return chunks


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


def retrieve(
    query_embedding: list[float],
    chunks: list[tuple[RagChunk, list[float]]],
    top_k: int = 6,
    min_score: float = 0.0,
) -> list[RagChunk]:
    """Rank (chunk, embedding) pairs against the query, best first."""
    top_k = int(clamp(top_k, 1, 50))
    min_score = clamp(min_score, 0.0, 1.0)
    scored = [
        replace(chunk, score=cosine_similarity(query_embedding, embedding))
        for chunk, embedding in chunks
    ]
    scored = [chunk for chunk in scored if (chunk.score or 0.0) >= min_score]
    scored.sort(key=lambda chunk: chunk.score or 0.0, reverse=True)
    return scored[:top_k]


def merge_results(*lists: list[RagChunk]) -> list[RagChunk]:
    """Union of result lists keeping the best score per chunk id."""
    best: dict[str, RagChunk] = {}
    for results in lists:
        for chunk in results:
            existing = best.get(chunk.id)
            if existing is None or (chunk.score or 0.0) > (existing.score or 0.0):
                best[chunk.id] = chunk
    return sorted(best.values(), key=lambda chunk: chunk.score or 0.0, reverse=True)


def build_context(
    results: list[RagChunk], max_chars: int = 5000, include_scores: bool = True
) -> tuple[str, list[RagChunk]]:
    """Prompt-ready context block plus the chunks that fit in it."""
    limit = int(clamp(max_chars, 500, 20000))
    ordered = sorted(results, key=lambda chunk: chunk.score or 0.0, reverse=True)

    blocks: list[str] = []
    used: list[RagChunk] = []
    total = 0
    for chunk in ordered:
        header = [f"Title: {chunk.title}"] if chunk.title else []
        if chunk.source_type:
            header.append(f"Type: {chunk.source_type}")
        if chunk.source_url:
            header.append(f"URL: {chunk.source_url}")
        header.append(f"Chunk: {chunk.chunk_index}")
        if include_scores and chunk.score is not None:
            header.append(f"Score: {chunk.score:.4f}")

        block = f"---\n{' | '.join(header)}\n\n{chunk.content}\n"
        if total + len(block) > limit:
            break
        blocks.append(block)
        used.append(chunk)
        total += len(block)

    return "\n".join(blocks), used


def chunks_to_sources(results: list[RagChunk]) -> list[dict[str, Any]]:
    return [
        {
            "id": chunk.id,
            "title": chunk.title,
            "url": chunk.source_url,
            "type": chunk.source_type,
            "chunk_index": chunk.chunk_index,
            "score": chunk.score,
            "content_preview": truncate(chunk.content, 220, hard_cut=True),
        }
        for chunk in results
    ]


def prepare_query(query: str, top_k: object = None) -> dict[str, Any]:
    """Normalized retrieval request; top_k defaults to 6 and is clamped to 1..20."""
    if isinstance(top_k, int | float) and not isinstance(top_k, bool):
        k = int(clamp(top_k, 1, 20))
    else:
        k = 6
    return {"query": normalize_whitespace(query or ""), "top_k": k}


async def embed_many(
    texts: list[str],
    batch_size: int = 10,
    client: LLMClient | None = None,
) -> EmbedManyResult:
    """Embed texts in batches through the LLM client's embeddings endpoint."""
    client = client or get_llm_client()
    if not client.available:
        llm_logger.graceful_fallback("embed_many", "LLM API key not configured")
        return EmbedManyResult(success=False, error="Embeddings provider is not configured.")

    size = int(clamp(batch_size, 1, 50))
    vectors: list[list[float]] = []
    for start in range(0, len(texts), size):
        batch = texts[start : start + size]
        result = await client.embed(batch)
        if not result.success or len(result.vectors) != len(batch):
            logger.warning(
                "Embedding batch failed",
                extra={"batch_start": start, "batch_size": len(batch), "error": result.error},
            )
            return EmbedManyResult(success=False, vectors=vectors, error=result.error)
        vectors.extend(result.vectors)
    return EmbedManyResult(success=True, vectors=vectors)
