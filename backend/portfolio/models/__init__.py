"""Models layer - SQLAlchemy ORM models.

All models inherit from the Base class defined in core.database.
"""

from portfolio.core.database import Base
from portfolio.models.admin import Admin, AdminSession
from portfolio.models.analytics_event import AnalyticsEvent
from portfolio.models.blog import Blog
from portfolio.models.chat import (
    CHATBOT_ROLES,
    LIVECHAT_ROLES,
    LIVECHAT_STATUSES,
    ChatbotMessage,
    LivechatMessage,
    LivechatSession,
)
from portfolio.models.content_node import NODE_TYPES, ContentNode
from portfolio.models.media import Media
from portfolio.models.profile import Skill, TimelineEntry
from portfolio.models.project import Project
from portfolio.models.section import Section
from portfolio.models.setting import Setting

__all__ = [
    "Base",
    "Admin",
    "AdminSession",
    "AnalyticsEvent",
    "Blog",
    "CHATBOT_ROLES",
    "ChatbotMessage",
    "ContentNode",
    "LIVECHAT_ROLES",
    "LIVECHAT_STATUSES",
    "LivechatMessage",
    "LivechatSession",
    "Media",
    "NODE_TYPES",
    "Project",
    "Section",
    "Setting",
    "Skill",
    "TimelineEntry",
]
