"""API v1 router and endpoint organization."""

from fastapi import APIRouter, Depends

from portfolio.api.v1.endpoints import (
    admin_ai,
    admin_chat,
    admin_content,
    admin_site,
    auth,
    chatbot,
    content,
    livechat,
    site,
)
from portfolio.core.auth import require_admin

router = APIRouter(tags=["v1"])

# Public site
router.include_router(content.router, tags=["Content"])
router.include_router(site.router, tags=["Site"])
router.include_router(chatbot.router, prefix="/chatbot", tags=["Chatbot"])
router.include_router(livechat.router, prefix="/livechat", tags=["Live Chat"])
router.include_router(auth.router, prefix="/auth", tags=["Auth"])

# Admin back-office
admin_router = APIRouter(dependencies=[Depends(require_admin)])
admin_router.include_router(admin_content.router, tags=["Admin Content"])
admin_router.include_router(admin_site.router, tags=["Admin Site"])
admin_router.include_router(admin_chat.router, tags=["Admin Chat"])
admin_router.include_router(admin_ai.router, tags=["Admin AI"])
router.include_router(admin_router, prefix="/admin")
