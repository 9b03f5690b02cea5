"""
Element document model.

An element is one drawable unit on the canvas. Elements form a tagged union
on ``type``: every kind is its own model carrying the shared geometry and
style fields plus only its own payload. Anything that does not match a known
variant is rejected.

Wire names are camelCase (``strokeColor``), attributes are snake_case
(``stroke_color``). Models are frozen; edits go through ``model_copy``.
"""

import enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ElementType(str, enum.Enum):
    RECTANGLE = "rectangle"
    DIAMOND = "diamond"
    CIRCLE = "circle"
    LINE = "line"
    ARROW = "arrow"
    DRAW = "draw"
    TEXT = "text"
    IMAGE = "image"
    CODE = "code"


SHAPE_TYPES = frozenset({
    ElementType.RECTANGLE,
    ElementType.DIAMOND,
    ElementType.CIRCLE,
    ElementType.LINE,
    ElementType.ARROW,
})

# Shapes drawn as a bare stroke never get a fill
STROKE_ONLY_TYPES = frozenset({ElementType.LINE, ElementType.ARROW})

StrokeWidth = Literal[1, 2, 4]
StrokeStyle = Literal["solid", "dashed", "dotted"]
Roughness = Literal[0, 1, 2]

TRANSPARENT = "transparent"


class Point(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    x: float
    y: float


class ElementBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    id: str = Field(..., min_length=1)
    x: float
    y: float
    width: float
    height: float
    angle: float = 0.0

    stroke_color: str
    background_color: str = TRANSPARENT
    stroke_width: StrokeWidth = 2
    stroke_style: StrokeStyle = "solid"
    # Reserved: no sketch renderer reads it
    roughness: Roughness = 1
    opacity: float = Field(1.0, ge=0.0, le=1.0)

    # Reserved: deletion is hard removal, live elements always carry False
    is_deleted: bool = False

    @property
    def kind(self) -> ElementType:
        return ElementType(self.type)


class RectangleElement(ElementBase):
    type: Literal["rectangle"] = "rectangle"


class DiamondElement(ElementBase):
    type: Literal["diamond"] = "diamond"


class CircleElement(ElementBase):
    type: Literal["circle"] = "circle"


class LineElement(ElementBase):
    type: Literal["line"] = "line"


class ArrowElement(ElementBase):
    type: Literal["arrow"] = "arrow"


class DrawElement(ElementBase):
    """Freehand path. The bounding box is derived from the points."""
    type: Literal["draw"] = "draw"
    points: List[Point] = Field(..., min_length=1)


class TextElement(ElementBase):
    type: Literal["text"] = "text"
    text: Optional[str] = None
    font_size: Optional[float] = Field(None, gt=0)
    font_family: Optional[str] = None


class ImageElement(ElementBase):
    type: Literal["image"] = "image"
    image_url: Optional[str] = None


class CodeElement(ElementBase):
    type: Literal["code"] = "code"
    code: Optional[str] = None
    code_language: Optional[str] = None
    code_output: Optional[str] = None
    code_explanation: Optional[str] = None
    is_executing: Optional[bool] = None


Element = Annotated[
    Union[
        RectangleElement,
        DiamondElement,
        CircleElement,
        LineElement,
        ArrowElement,
        DrawElement,
        TextElement,
        ImageElement,
        CodeElement,
    ],
    Field(discriminator="type"),
]

ELEMENT_CLASSES = {
    ElementType.RECTANGLE: RectangleElement,
    ElementType.DIAMOND: DiamondElement,
    ElementType.CIRCLE: CircleElement,
    ElementType.LINE: LineElement,
    ElementType.ARROW: ArrowElement,
    ElementType.DRAW: DrawElement,
    ElementType.TEXT: TextElement,
    ElementType.IMAGE: ImageElement,
    ElementType.CODE: CodeElement,
}

element_list_adapter = TypeAdapter(List[Element])


def parse_elements(payload: Iterable[Dict[str, Any]]) -> List[ElementBase]:
    """Validate a raw element array. Raises pydantic.ValidationError on any bad item."""
    return element_list_adapter.validate_python(list(payload))


def dump_element(element: ElementBase) -> Dict[str, Any]:
    return element.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_elements(elements: Iterable[ElementBase]) -> List[Dict[str, Any]]:
    return [dump_element(element) for element in elements]


def find_duplicate_ids(elements: Iterable[ElementBase]) -> List[str]:
    seen = set()
    duplicates = []
    for element in elements:
        if element.id in seen and element.id not in duplicates:
            duplicates.append(element.id)
        seen.add(element.id)
    return duplicates
