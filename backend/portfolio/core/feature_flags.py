"""Feature flags with settings overrides.

A flag is overridden by `FEATURE_<KEY>=true|false`, from the environment
or `.env` like every other setting. Any other value is ignored and the
default stands.
"""

from portfolio.core.config import get_settings
from portfolio.core.exceptions import FeatureDisabledError

DEFAULT_FLAGS: dict[str, bool] = {
    "analytics": True,
    "chatbot": True,
    "realtime_chat": True,
    "ai_blog_draft": True,
    "ai_embeddings": True,
    "ai_readme": True,
    "admin_cms": True,
    "admin_media": True,
    "rag_chatbot": False,
    "content_versioning": False,
    "experiments": False,
    "theming": False,
    "localization": False,
}

FEATURE_KEYS = frozenset(DEFAULT_FLAGS)


def get_feature_flags() -> dict[str, bool]:
    """Resolve every flag: default, then settings override, then production rules."""
    settings = get_settings()
    flags: dict[str, bool] = {}
    for key, default in DEFAULT_FLAGS.items():
        override = getattr(settings, f"feature_{key}")
        flags[key] = default if override is None else override

    if settings.environment == "production":
        flags["experiments"] = False

    return flags


def is_enabled(key: str) -> bool:
    if key not in FEATURE_KEYS:
        return False
    return get_feature_flags()[key]


def require_feature(key: str):
    """FastAPI dependency factory that 404s when `key` is disabled."""

    def dependency() -> None:
        if not is_enabled(key):
            raise FeatureDisabledError(key)

    return dependency
