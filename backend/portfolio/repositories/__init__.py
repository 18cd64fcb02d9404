"""Repositories layer - database access per table."""

from portfolio.repositories.admin import AdminRepository, AdminSessionRepository
from portfolio.repositories.analytics import AnalyticsRepository
from portfolio.repositories.chat import (
    ChatbotMessageRepository,
    LivechatMessageRepository,
    LivechatSessionRepository,
)
from portfolio.repositories.content import (
    BlogRepository,
    ProjectRepository,
    SectionRepository,
    SkillRepository,
    TimelineRepository,
)
from portfolio.repositories.content_node import ContentNodeRepository
from portfolio.repositories.media import MediaRepository
from portfolio.repositories.setting import SettingRepository

__all__ = [
    "AdminRepository",
    "AdminSessionRepository",
    "AnalyticsRepository",
    "BlogRepository",
    "ChatbotMessageRepository",
    "ContentNodeRepository",
    "LivechatMessageRepository",
    "LivechatSessionRepository",
    "MediaRepository",
    "ProjectRepository",
    "SectionRepository",
    "SettingRepository",
    "SkillRepository",
    "TimelineRepository",
]
