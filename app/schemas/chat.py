from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Generic, List, Optional, TypeVar
from datetime import datetime

from app.schemas.element import Element, find_duplicate_ids

T = TypeVar("T")

CHAT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ElementsPayload(CamelModel):
    @field_validator("elements", check_fields=False)
    @classmethod
    def reject_duplicate_ids(cls, elements):
        if elements is None:
            return elements
        duplicates = find_duplicate_ids(elements)
        if duplicates:
            raise ValueError(f"Duplicate element ids: {', '.join(duplicates)}")
        return elements


class ChatCreate(ElementsPayload):
    title: str = Field(..., min_length=1, max_length=200)
    elements: List[Element] = Field(default_factory=list)


class ChatUpdate(ElementsPayload):
    """Partial update; omitted fields are left as stored."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    elements: Optional[List[Element]] = None


class SaveElementsRequest(ElementsPayload):
    elements: List[Element]


class ChatResponse(CamelModel):
    """Owner id is never exposed."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    title: str
    elements: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class PaginatedResponse(CamelModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


class ErrorDetail(BaseModel):
    field: str
    message: str


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every route: ``{success, data?, error?, message?}``."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    details: Optional[List[ErrorDetail]] = None


class AnalyzeRequest(BaseModel):
    code: str = Field(..., max_length=100_000)
    language: str = Field("javascript", min_length=1, max_length=32)


class AnalyzeResponse(BaseModel):
    output: str
    explanation: str
