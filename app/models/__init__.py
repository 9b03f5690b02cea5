from app.models.chat import Chat

__all__ = ["Chat"]
