from fastapi import APIRouter

from app.api.v1.endpoints import chats, analysis, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(chats.router, prefix="/chats", tags=["chats"])
api_router.include_router(analysis.router, prefix="/analyze", tags=["analysis"])
