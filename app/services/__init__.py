"""
Service layer: chat persistence and AI code analysis.
"""

from app.services.chat_service import ChatService
from app.services.code_analyzer import CodeAnalyzer

__all__ = ["ChatService", "CodeAnalyzer"]
