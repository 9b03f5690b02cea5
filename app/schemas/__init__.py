from app.schemas.element import Element, ElementBase, ElementType, Point, parse_elements, dump_elements
from app.schemas.chat import (
    ChatCreate, ChatUpdate, SaveElementsRequest, ChatResponse,
    PaginatedResponse, ApiResponse, ErrorDetail,
    AnalyzeRequest, AnalyzeResponse,
)
