"""Content tree service.

The tree is stored as an adjacency list in `content_nodes`. Reads return
the flat, normalized node list plus the nested tree built from it.
Every node gets a `full_path` (ancestor slugs joined with '/') and a
site-relative `path` ('/' + full_path).
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ConflictError, NotFoundError, ValidationError
from portfolio.core.logging import get_logger
from portfolio.models.content_node import NODE_TYPES, ContentNode
from portfolio.repositories.content_node import ContentNodeRepository
from portfolio.utils.dates import isoformat
from portfolio.utils.slugify import slugify
from portfolio.utils.text import clamp_or_default
from portfolio.utils.validation import normalize_whitespace

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 25
MAX_DEPTH_LIMIT = 50

# camelCase keys accepted on create/update, mapped onto column names
_FIELD_ALIASES = {
    "parentId": "parent_id",
    "nodeType": "node_type",
    "type": "node_type",
    "refId": "ref_id",
    "itemId": "ref_id",
    "orderIndex": "order_index",
    "order": "order_index",
    "isPublished": "is_published",
    "name": "title",
}


def normalize_path(path: str | None) -> str:
    """'/a/b' form: leading slash, no trailing slash, no empty segments."""
    if not isinstance(path, str):
        return "/"
    parts = [part.strip() for part in path.strip().split("/") if part.strip()]
    return "/" + "/".join(parts) if parts else "/"


def normalize_node(node: ContentNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "parent_id": node.parent_id,
        "node_type": node.node_type if node.node_type in NODE_TYPES else "folder",
        "title": node.title,
        "slug": node.slug or slugify(node.title) or node.id,
        "ref_id": node.ref_id,
        "order_index": node.order_index or 0,
        "icon": node.icon,
        "description": node.description,
        "is_published": bool(node.is_published),
        "meta": dict(node.meta or {}),
        "created_at": isoformat(node.created_at),
        "updated_at": isoformat(node.updated_at),
    }


def build_tree(
    nodes: list[dict[str, Any]],
    max_depth: int = DEFAULT_MAX_DEPTH,
    root_id: str | None = None,
) -> list[dict[str, Any]]:
    """Nest normalized nodes under their parents.

    Nodes whose parent is not in the set become roots. Children deeper
    than `max_depth` are dropped. Each node in the result (and in the
    input list) gains `full_path`, `path`, `depth` and `children`.
    """
    by_id = {node["id"]: node for node in nodes}
    children: dict[str | None, list[dict[str, Any]]] = {}
    for node in nodes:
        parent_id = node.get("parent_id")
        key = parent_id if parent_id in by_id else None
        children.setdefault(key, []).append(node)

    if root_id is not None:
        if root_id not in by_id:
            return []
        roots = [by_id[root_id]]
    else:
        roots = children.get(None, [])

    visited: set[str] = set()

    def attach(node: dict[str, Any], parent_path: str, depth: int) -> dict[str, Any]:
        visited.add(node["id"])
        full_path = f"{parent_path}/{node['slug']}" if parent_path else node["slug"]
        node["full_path"] = full_path
        node["path"] = normalize_path(full_path)
        node["depth"] = depth
        node["children"] = []
        if depth + 1 < max_depth:
            for child in children.get(node["id"], []):
                if child["id"] not in visited:
                    node["children"].append(attach(child, full_path, depth + 1))
        return node

    return [attach(root, "", 0) for root in roots if root["id"] not in visited]


def drop_hidden_branches(nodes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Published nodes whose ancestors are all published.

    A node under an unpublished parent is dropped with its whole branch
    rather than promoted to a root.
    """
    by_id = {node["id"]: node for node in nodes}
    visible: dict[str, bool] = {}

    def check(node: dict[str, Any]) -> bool:
        seen: list[str] = []
        current: dict[str, Any] | None = node
        result = True
        while current is not None:
            node_id = current["id"]
            if node_id in visible:
                result = visible[node_id]
                break
            if node_id in seen or not is_publicly_accessible(current):
                result = False
                break
            seen.append(node_id)
            current = by_id.get(current.get("parent_id"))
        for node_id in seen:
            visible[node_id] = result
        return result

    return [node for node in nodes if check(node)]


def _walk(tree: list[dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    stack = list(reversed(tree))
    while stack:
        node = stack.pop()
        out.append(node)
        stack.extend(reversed(node.get("children", [])))
    return out


def find_by_path(tree: list[dict[str, Any]], path: str) -> dict[str, Any] | None:
    target = normalize_path(path)
    for node in _walk(tree):
        if node.get("path") == target:
            return node
    return None


def breadcrumbs(tree: list[dict[str, Any]], path: str) -> list[dict[str, str]]:
    """Trail of {id, title, path} from a root down to the node at `path`."""
    target = normalize_path(path)

    def search(nodes: list[dict[str, Any]], trail: list[dict[str, str]]) -> list[dict[str, str]] | None:
        for node in nodes:
            step = trail + [{"id": node["id"], "title": node["title"], "path": node["path"]}]
            if node["path"] == target:
                return step
            found = search(node.get("children", []), step)
            if found is not None:
                return found
        return None

    return search(tree, []) or []


def is_publicly_accessible(node: dict[str, Any] | ContentNode) -> bool:
    published = node.get("is_published") if isinstance(node, dict) else node.is_published
    return bool(published)


def is_indexable(node: dict[str, Any] | ContentNode) -> bool:
    if not is_publicly_accessible(node):
        return False
    meta = node.get("meta") if isinstance(node, dict) else node.meta
    return not (isinstance(meta, dict) and meta.get("noindex"))


def _canonical_fields(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        out[_FIELD_ALIASES.get(key, key)] = value
    return out


class ContentTreeService:
    """Read and edit the admin content tree."""

    @staticmethod
    async def list_tree(
        db: AsyncSession,
        scope: str = "public",
        include_unpublished: bool = False,
        max_depth: object = DEFAULT_MAX_DEPTH,
        root_id: str | None = None,
    ) -> dict[str, Any]:
        """Flat nodes plus the nested tree.

        The public scope never returns unpublished nodes; the admin scope
        returns them only with include_unpublished.
        """
        published_only = scope != "admin" or not include_unpublished
        depth = int(clamp_or_default(max_depth, 1, MAX_DEPTH_LIMIT, DEFAULT_MAX_DEPTH))

        rows = await ContentNodeRepository(db).list_ordered(published_only=False)
        nodes = [normalize_node(row) for row in rows]
        if published_only:
            nodes = drop_hidden_branches(nodes)
        tree = build_tree(nodes, max_depth=depth, root_id=root_id)
        flat = [{k: v for k, v in node.items() if k != "children"} for node in _walk(tree)]
        return {"nodes": flat, "tree": tree}

    @staticmethod
    async def get_node(db: AsyncSession, node_id: str) -> ContentNode:
        node = await ContentNodeRepository(db).get_by_id(node_id)
        if node is None:
            raise NotFoundError(f"Content node '{node_id}' not found")
        return node

    @staticmethod
    async def create_node(db: AsyncSession, data: dict[str, Any]) -> ContentNode:
        """Create a node. Accepts snake_case or camelCase keys."""
        fields = _canonical_fields(data)
        repo = ContentNodeRepository(db)

        title = normalize_whitespace(fields.get("title"))[:200]
        if not title:
            raise ValidationError("Title is required.", field="title", code="TITLE_REQUIRED")

        parent_id = fields.get("parent_id") or None
        if parent_id is not None and await repo.get_by_id(parent_id) is None:
            raise NotFoundError(f"Parent node '{parent_id}' not found")

        node_type = fields.get("node_type")
        meta = fields.get("meta")
        node = await repo.create(
            parent_id=parent_id,
            node_type=node_type if node_type in NODE_TYPES else "folder",
            title=title,
            slug=slugify(fields.get("slug") or title) or None,
            ref_id=fields.get("ref_id") or None,
            order_index=int(clamp_or_default(fields.get("order_index"), -1_000_000, 1_000_000, 0)),
            icon=normalize_whitespace(fields.get("icon"))[:64] or None,
            description=normalize_whitespace(fields.get("description")) or None,
            is_published=fields.get("is_published") if isinstance(fields.get("is_published"), bool) else True,
            meta=meta if isinstance(meta, dict) else {},
        )
        logger.info(
            "Content node created",
            extra={"node_id": node.id, "parent_id": parent_id, "node_type": node.node_type},
        )
        return node

    @staticmethod
    async def update_node(db: AsyncSession, node_id: str, data: dict[str, Any]) -> ContentNode:
        """Rename, move or reorder a node.

        Raises:
            ValidationError: NO_FIELDS_TO_UPDATE or TITLE_EMPTY.
            ConflictError: CYCLE when moving under itself or a descendant.
        """
        fields = _canonical_fields(data)
        repo = ContentNodeRepository(db)
        node = await ContentTreeService.get_node(db, node_id)
        updates: dict[str, Any] = {}

        if "title" in fields:
            title = normalize_whitespace(fields["title"])[:200]
            if not title:
                raise ValidationError("Title cannot be empty.", field="title", code="TITLE_EMPTY")
            updates["title"] = title
        if "slug" in fields:
            updates["slug"] = slugify(fields["slug"] or updates.get("title") or node.title) or None
        if "node_type" in fields:
            updates["node_type"] = fields["node_type"] if fields["node_type"] in NODE_TYPES else "folder"
        if "order_index" in fields:
            updates["order_index"] = int(
                clamp_or_default(fields["order_index"], -1_000_000, 1_000_000, node.order_index)
            )
        for key in ("ref_id", "icon", "description"):
            if key in fields:
                updates[key] = normalize_whitespace(fields[key]) or None
        if isinstance(fields.get("is_published"), bool):
            updates["is_published"] = fields["is_published"]
        if isinstance(fields.get("meta"), dict):
            updates["meta"] = fields["meta"]

        if "parent_id" in fields:
            new_parent = fields["parent_id"] or None
            if new_parent is not None:
                await ContentTreeService._check_move(repo, node_id, new_parent)
            updates["parent_id"] = new_parent

        if not updates:
            raise ValidationError("No fields to update.", code="NO_FIELDS_TO_UPDATE")
        return await repo.update(node, **updates)

    @staticmethod
    async def _check_move(repo: ContentNodeRepository, node_id: str, new_parent: str) -> None:
        parents = await repo.parent_map()
        if new_parent not in parents:
            raise NotFoundError(f"Parent node '{new_parent}' not found")
        cursor: str | None = new_parent
        seen: set[str] = set()
        while cursor is not None and cursor not in seen:
            if cursor == node_id:
                raise ConflictError(
                    "A node cannot be moved under itself or one of its descendants.",
                    code="CYCLE",
                )
            seen.add(cursor)
            cursor = parents.get(cursor)

    @staticmethod
    async def delete_node(db: AsyncSession, node_id: str) -> None:
        repo = ContentNodeRepository(db)
        node = await ContentTreeService.get_node(db, node_id)
        if await repo.has_children(node_id):
            raise ConflictError(
                "Delete or move this node's children first.", code="HAS_CHILDREN"
            )
        await repo.delete(node)
