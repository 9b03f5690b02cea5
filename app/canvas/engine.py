"""
Canvas interaction engine.

Translates raw pointer events into document edits, selection changes and
history commits. The engine is headless: a renderer reads ``elements``,
``selection``, ``draft``, ``text_editor`` and ``viewport`` after each event.

Pointer-down dispatches on the active tool. Pointer-move and pointer-up
dispatch on the transient interaction state, so changing tools mid-gesture is
not supported (``set_tool`` closes any open gesture first).

Drags and resizes run as history gestures: previews use ``History.replace``
and pointer-up commits exactly one entry. Erasing commits once per erased
element, so each removal is undone separately.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from app.canvas.geometry import Rect, generate_id, is_point_in_element, normalize_rect
from app.canvas.history import History
from app.canvas.images import decode_image
from app.schemas.element import (
    ELEMENT_CLASSES,
    SHAPE_TYPES,
    STROKE_ONLY_TYPES,
    TRANSPARENT,
    CodeElement,
    DrawElement,
    ElementBase,
    ElementType,
    ImageElement,
    Point,
    Roughness,
    StrokeStyle,
    StrokeWidth,
    TextElement,
)
from app.services.code_analyzer import CodeAnalysis

logger = logging.getLogger(__name__)

Document = Tuple[ElementBase, ...]

MIN_ZOOM = 0.1
MAX_ZOOM = 3.0
ZOOM_STEP = 1.2

CANVAS_WIDTH = 5000
CANVAS_HEIGHT = 3000

HANDLE_TOLERANCE_PX = 8
MIN_RESIZE_SIZE = 20
MIN_SHAPE_SIZE = 5
MAX_IMAGE_WIDTH = 300

TEXT_MIN_WIDTH = 20
TEXT_CHAR_WIDTH_RATIO = 0.6
TEXT_LINE_HEIGHT_RATIO = 1.2

CODE_BLOCK_WIDTH = 450
CODE_BLOCK_HEIGHT = 300
CODE_BLOCK_STROKE = "#8b5cf6"
DEFAULT_CODE_LANGUAGE = "javascript"

CODE_LANGUAGES = {
    "javascript": "JavaScript",
    "python": "Python",
    "java": "Java",
    "cpp": "C++",
    "html": "HTML",
    "css": "CSS",
    "sql": "SQL",
    "bash": "Bash",
}

DEFAULT_CODE = f'// {CODE_LANGUAGES[DEFAULT_CODE_LANGUAGE]} code\nconsole.log("Hello, AI!");'

ANALYSIS_FAILED = CodeAnalysis(
    output="Error: Failed to analyze code",
    explanation="Unable to connect to AI service.",
)


class Tool(str, enum.Enum):
    SELECT = "select"
    HAND = "hand"
    RECTANGLE = "rectangle"
    DIAMOND = "diamond"
    CIRCLE = "circle"
    ARROW = "arrow"
    LINE = "line"
    DRAW = "draw"
    TEXT = "text"
    IMAGE = "image"
    ERASER = "eraser"
    CODE = "code"


SHAPE_TOOLS = frozenset({Tool.RECTANGLE, Tool.DIAMOND, Tool.CIRCLE, Tool.ARROW, Tool.LINE})


class InteractionState(str, enum.Enum):
    IDLE = "idle"
    DRAWING_SHAPE = "drawing-shape"
    DRAWING_FREEHAND = "drawing-freehand"
    DRAGGING_ELEMENT = "dragging-element"
    RESIZING_ELEMENT = "resizing-element"
    PANNING = "panning"
    ERASING = "erasing"
    EDITING_TEXT = "editing-text"


class ResizeHandle(str, enum.Enum):
    NW = "nw"
    N = "n"
    NE = "ne"
    E = "e"
    SE = "se"
    S = "s"
    SW = "sw"
    W = "w"


class Analyzer(Protocol):
    async def analyze(self, code: str, language: str) -> CodeAnalysis:
        ...


@dataclass
class PointerEvent:
    """Pointer position in device (client) pixels."""
    client_x: float
    client_y: float


class StyleSettings(BaseModel):
    """Style applied to newly created elements. Checked on every assignment."""
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    stroke_color: str = "#1971c2"
    background_color: str = TRANSPARENT
    stroke_width: StrokeWidth = 2
    stroke_style: StrokeStyle = "solid"
    roughness: Roughness = 1
    font_size: float = Field(16, gt=0)
    font_family: str = "Arial, sans-serif"


@dataclass
class Viewport:
    """
    Scroll container state.

    ``offset_x``/``offset_y`` is the canvas element's position on screen,
    ``width``/``height`` the visible container size in device pixels.
    """
    zoom: float = 1.0
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    width: float = 800.0
    height: float = 600.0

    def to_document(self, client_x: float, client_y: float) -> Point:
        return Point(
            x=(client_x - self.offset_x + self.scroll_x) / self.zoom,
            y=(client_y - self.offset_y + self.scroll_y) / self.zoom,
        )

    def scroll_by(self, dx: float, dy: float) -> None:
        max_x = max(0.0, CANVAS_WIDTH * self.zoom - self.width)
        max_y = max(0.0, CANVAS_HEIGHT * self.zoom - self.height)
        self.scroll_x = min(max(self.scroll_x + dx, 0.0), max_x)
        self.scroll_y = min(max(self.scroll_y + dy, 0.0), max_y)

    def visible_center(self) -> Point:
        return Point(
            x=(self.scroll_x + self.width / 2) / self.zoom,
            y=(self.scroll_y + self.height / 2) / self.zoom,
        )


@dataclass
class TextEditor:
    """Open text input. ``element_id`` is set when editing an existing element."""
    position: Point
    text: str = ""
    element_id: Optional[str] = None


@dataclass
class _ResizeGesture:
    element_id: str
    handle: ResizeHandle
    start_bounds: Rect
    start_point: Point


@dataclass
class _DragGesture:
    element_id: str
    offset: Point


@dataclass
class _DrawGesture:
    start: Point
    current: Point
    path: List[Point] = field(default_factory=list)


def _reframe(element: ElementBase, x: float, y: float, width: float, height: float) -> ElementBase:
    """Move/resize an element's box. Freehand points follow the box."""
    changes = {"x": x, "y": y, "width": width, "height": height}
    if isinstance(element, DrawElement):
        scale_x = width / element.width if element.width else 1.0
        scale_y = height / element.height if element.height else 1.0
        changes["points"] = [
            Point(x=x + (p.x - element.x) * scale_x, y=y + (p.y - element.y) * scale_y)
            for p in element.points
        ]
    return element.model_copy(update=changes)


class CanvasEngine:
    """State machine over one canvas document."""

    def __init__(
        self,
        elements: Iterable[ElementBase] = (),
        style: Optional[StyleSettings] = None,
        viewport: Optional[Viewport] = None,
        history_limit: Optional[int] = None,
        on_image_request: Optional[Callable[[], None]] = None,
    ):
        self.history: History[Document] = History(tuple(elements), limit=history_limit)
        self.style = style or StyleSettings()
        self.viewport = viewport or Viewport()
        self.on_image_request = on_image_request

        self._tool = Tool.SELECT
        self._selection: List[str] = []
        self._state = InteractionState.IDLE

        self._resize: Optional[_ResizeGesture] = None
        self._drag: Optional[_DragGesture] = None
        self._draw: Optional[_DrawGesture] = None
        self._pan_last: Optional[Tuple[float, float]] = None
        self._erased: Set[str] = set()
        self._text: Optional[TextEditor] = None

        # Code blocks with an analysis request in flight. Kept out of the
        # document so undo, redo and saves never capture a busy block.
        self._executing: Set[str] = set()
        # Analysis results that arrived during a drag or resize
        self._pending_analysis: Dict[str, CodeAnalysis] = {}

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def elements(self) -> List[ElementBase]:
        return list(self.history.present)

    @property
    def tool(self) -> Tool:
        return self._tool

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def selection(self) -> List[str]:
        return list(self._selection)

    @property
    def text_editor(self) -> Optional[TextEditor]:
        return self._text

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def shows_resize_handles(self) -> bool:
        return self._tool is Tool.SELECT and len(self._selection) == 1

    @property
    def draft(self) -> Optional[ElementBase]:
        """The shape or path being drawn, not yet part of the document."""
        if self._draw is None:
            return None
        if self._state is InteractionState.DRAWING_FREEHAND:
            return self._freehand_element(self._draw.path)
        if self._state is InteractionState.DRAWING_SHAPE:
            rect = normalize_rect(
                self._draw.start.x, self._draw.start.y,
                self._draw.current.x, self._draw.current.y,
            )
            return self._shape_element(ElementType(self._tool.value), rect)
        return None

    def get_element(self, element_id: str) -> Optional[ElementBase]:
        for element in self.history.present:
            if element.id == element_id:
                return element
        return None

    def element_at(self, point: Point, kinds: Optional[Set[ElementType]] = None) -> Optional[ElementBase]:
        """Topmost live element containing the point."""
        for element in reversed(self.history.present):
            if element.is_deleted:
                continue
            if kinds is not None and element.kind not in kinds:
                continue
            if is_point_in_element(point, element):
                return element
        return None

    def resize_handles(self, element: ElementBase) -> List[Tuple[ResizeHandle, Point]]:
        x, y, w, h = element.x, element.y, element.width, element.height
        return [
            (ResizeHandle.NW, Point(x=x, y=y)),
            (ResizeHandle.N, Point(x=x + w / 2, y=y)),
            (ResizeHandle.NE, Point(x=x + w, y=y)),
            (ResizeHandle.E, Point(x=x + w, y=y + h / 2)),
            (ResizeHandle.SE, Point(x=x + w, y=y + h)),
            (ResizeHandle.S, Point(x=x + w / 2, y=y + h)),
            (ResizeHandle.SW, Point(x=x, y=y + h)),
            (ResizeHandle.W, Point(x=x, y=y + h / 2)),
        ]

    def handle_at(self, point: Point) -> Optional[Tuple[ElementBase, ResizeHandle]]:
        if not self.shows_resize_handles:
            return None
        element = self.get_element(self._selection[0])
        if element is None:
            return None
        tolerance = HANDLE_TOLERANCE_PX / self.viewport.zoom
        for handle, position in self.resize_handles(element):
            if abs(point.x - position.x) < tolerance and abs(point.y - position.y) < tolerance:
                return element, handle
        return None

    def to_document_point(self, event: PointerEvent) -> Point:
        return self.viewport.to_document(event.client_x, event.client_y)

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, event: PointerEvent) -> None:
        point = self.to_document_point(event)

        if self._state is InteractionState.EDITING_TEXT:
            # Clicking anywhere closes the open text input
            self.commit_text()
            return
        if self._state is not InteractionState.IDLE:
            logger.debug(f"pointer_down ignored in state {self._state.value}")
            return

        tool = self._tool

        if tool is Tool.ERASER:
            self._state = InteractionState.ERASING
            self._erased = set()
            self._erase_at(point)
            return

        if tool is Tool.SELECT:
            self._select_down(point)
            return

        if tool is Tool.HAND:
            self._state = InteractionState.PANNING
            self._pan_last = (event.client_x, event.client_y)
            return

        if tool is Tool.TEXT:
            existing = self.element_at(point, kinds={ElementType.TEXT})
            self._text = TextEditor(
                position=point,
                text=(existing.text or "") if existing else "",
                element_id=existing.id if existing else None,
            )
            self._state = InteractionState.EDITING_TEXT
            return

        if tool is Tool.CODE:
            self._insert_code_block(point)
            return

        if tool is Tool.IMAGE:
            if self.on_image_request is not None:
                self.on_image_request()
            return

        if tool is Tool.DRAW:
            self._draw = _DrawGesture(start=point, current=point, path=[point])
            self._state = InteractionState.DRAWING_FREEHAND
            return

        if tool in SHAPE_TOOLS:
            self._draw = _DrawGesture(start=point, current=point)
            self._state = InteractionState.DRAWING_SHAPE

    def pointer_move(self, event: PointerEvent) -> None:
        state = self._state
        if state in (InteractionState.IDLE, InteractionState.EDITING_TEXT):
            return

        point = self.to_document_point(event)

        if state is InteractionState.ERASING:
            self._erase_at(point)
        elif state is InteractionState.RESIZING_ELEMENT:
            self._resize_to(point)
        elif state is InteractionState.PANNING:
            last_x, last_y = self._pan_last
            self.viewport.scroll_by(-(event.client_x - last_x), -(event.client_y - last_y))
            self._pan_last = (event.client_x, event.client_y)
        elif state is InteractionState.DRAGGING_ELEMENT:
            self._drag_to(point)
        elif state is InteractionState.DRAWING_FREEHAND:
            self._draw.path.append(point)
            self._draw.current = point
        elif state is InteractionState.DRAWING_SHAPE:
            self._draw.current = point

    def pointer_up(self, event: PointerEvent) -> Optional[ElementBase]:
        """Finish the gesture. Returns the element created by it, if any."""
        state = self._state
        if state in (InteractionState.IDLE, InteractionState.EDITING_TEXT):
            return None

        created = None
        try:
            if state in (InteractionState.DRAGGING_ELEMENT, InteractionState.RESIZING_ELEMENT):
                self.history.commit()
            elif state is InteractionState.DRAWING_FREEHAND:
                if len(self._draw.path) > 1:
                    created = self._freehand_element(self._draw.path)
            elif state is InteractionState.DRAWING_SHAPE:
                end = self.to_document_point(event)
                rect = normalize_rect(self._draw.start.x, self._draw.start.y, end.x, end.y)
                if rect.width > MIN_SHAPE_SIZE or rect.height > MIN_SHAPE_SIZE:
                    created = self._shape_element(ElementType(self._tool.value), rect)

            if created is not None:
                self.history.set(self.history.present + (created,))
        finally:
            # Never leave the engine stuck mid-gesture
            self._end_gesture()
        return created

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_tool(self, tool) -> None:
        tool = Tool(tool)
        if self._state is InteractionState.EDITING_TEXT:
            self.commit_text()
        elif self._state is not InteractionState.IDLE:
            self.cancel()
        self._tool = tool
        if tool is not Tool.SELECT:
            self._selection = []

    def select(self, element_ids: Sequence[str]) -> None:
        present = {element.id for element in self.history.present}
        self._selection = [element_id for element_id in element_ids if element_id in present]

    def cancel(self) -> None:
        """Escape: drop text input, or revert an open drag/resize, or discard a drawing."""
        if self._state is InteractionState.EDITING_TEXT:
            self._text = None
        elif self.history.in_gesture:
            self.history.cancel()
        self._end_gesture()

    def undo(self) -> bool:
        if self._state is not InteractionState.IDLE:
            return False
        if not self.history.can_undo:
            return False
        self.history.undo()
        self._prune_selection()
        return True

    def redo(self) -> bool:
        if self._state is not InteractionState.IDLE:
            return False
        if not self.history.can_redo:
            return False
        self.history.redo()
        self._prune_selection()
        return True

    def load(self, elements: Iterable[ElementBase]) -> None:
        """Swap in another chat's document. Not undoable."""
        self._text = None
        self._pending_analysis = {}
        self._executing = set()
        self._end_gesture()
        self.history.reset(tuple(elements))
        self._selection = []

    def zoom_in(self) -> float:
        self.viewport.zoom = min(self.viewport.zoom * ZOOM_STEP, MAX_ZOOM)
        return self.viewport.zoom

    def zoom_out(self) -> float:
        self.viewport.zoom = max(self.viewport.zoom / ZOOM_STEP, MIN_ZOOM)
        return self.viewport.zoom

    def reset_zoom(self) -> None:
        self.viewport.zoom = 1.0
        self.viewport.scroll_x = 0.0
        self.viewport.scroll_y = 0.0

    def remove_element(self, element_id: str) -> bool:
        if self.get_element(element_id) is None:
            return False
        self.history.set(tuple(el for el in self.history.present if el.id != element_id))
        self._prune_selection()
        return True

    # ------------------------------------------------------------------
    # Text editing
    # ------------------------------------------------------------------

    def update_text(self, text: str) -> None:
        if self._text is None:
            raise RuntimeError("No text input is open")
        self._text.text = text

    def commit_text(self) -> Optional[ElementBase]:
        editor = self._text
        if editor is None:
            return None
        self._text = None
        self._end_gesture()

        if not editor.text.strip():
            return None

        if editor.element_id is not None:
            existing = self.get_element(editor.element_id)
            if existing is None:
                return None
            updated = existing.model_copy(update={"text": editor.text})
            self.history.set(self._swap(updated))
            return updated

        font_size = self.style.font_size
        element = TextElement(
            id=generate_id(),
            x=editor.position.x,
            y=editor.position.y,
            width=max(len(editor.text) * font_size * TEXT_CHAR_WIDTH_RATIO, TEXT_MIN_WIDTH),
            height=font_size * TEXT_LINE_HEIGHT_RATIO,
            stroke_color=self.style.stroke_color,
            background_color=TRANSPARENT,
            stroke_width=self.style.stroke_width,
            stroke_style=self.style.stroke_style,
            roughness=self.style.roughness,
            opacity=1,
            text=editor.text,
            font_size=font_size,
            font_family=self.style.font_family,
        )
        self.history.set(self.history.present + (element,))
        return element

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def insert_image(self, image_url: str, natural_width: float, natural_height: float) -> ImageElement:
        """Insert an image centred in the visible viewport, at most MAX_IMAGE_WIDTH wide."""
        if natural_width <= 0 or natural_height <= 0:
            raise ValueError("Image dimensions must be positive")

        aspect_ratio = natural_width / natural_height
        width = min(MAX_IMAGE_WIDTH, natural_width)
        height = width / aspect_ratio
        center = self.viewport.visible_center()

        element = ImageElement(
            id=generate_id(),
            x=center.x - width / 2,
            y=center.y - height / 2,
            width=width,
            height=height,
            stroke_color=TRANSPARENT,
            background_color=TRANSPARENT,
            stroke_width=self.style.stroke_width,
            stroke_style=self.style.stroke_style,
            roughness=self.style.roughness,
            opacity=1,
            image_url=image_url,
        )
        self.history.set(self.history.present + (element,))
        return element

    def insert_image_bytes(self, data: bytes, mime_type: Optional[str] = None) -> ImageElement:
        decoded = decode_image(data, mime_type)
        return self.insert_image(decoded.data_url, decoded.width, decoded.height)

    # ------------------------------------------------------------------
    # Code blocks
    # ------------------------------------------------------------------

    def update_code(self, element_id: str, code: str) -> bool:
        return self._replace_fields(element_id, code=code)

    def set_code_language(self, element_id: str, language: str) -> bool:
        if language not in CODE_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        return self._replace_fields(element_id, code_language=language)

    def set_element_height(self, element_id: str, height: float) -> bool:
        return self._replace_fields(element_id, height=height)

    async def analyze_code(self, element_id: str, analyzer: Analyzer) -> Optional[CodeAnalysis]:
        """
        Run AI analysis for one code block.

        Only that block is marked busy (see ``is_executing``); the rest of the
        canvas stays editable while the request is in flight. The output is
        written without a history entry.
        """
        element = self.get_element(element_id)
        if not isinstance(element, CodeElement):
            return None
        if element_id in self._executing:
            return None

        executing = self._executing
        executing.add(element_id)
        try:
            analysis = await analyzer.analyze(element.code or "", element.code_language or DEFAULT_CODE_LANGUAGE)
        except Exception:
            logger.exception(f"Code analysis raised for element {element_id}")
            analysis = ANALYSIS_FAILED
        finally:
            executing.discard(element_id)

        if executing is not self._executing:
            logger.debug(f"Dropping analysis for {element_id}: another document was loaded")
        elif self.history.in_gesture:
            self._pending_analysis[element_id] = analysis
        else:
            self._apply_analysis(element_id, analysis)
        return analysis

    def is_executing(self, element_id: str) -> bool:
        return element_id in self._executing

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _select_down(self, point: Point) -> None:
        grabbed = self.handle_at(point)
        if grabbed is not None:
            element, handle = grabbed
            self._resize = _ResizeGesture(
                element_id=element.id,
                handle=handle,
                start_bounds=Rect(element.x, element.y, element.width, element.height),
                start_point=point,
            )
            self.history.begin()
            self._state = InteractionState.RESIZING_ELEMENT
            return

        hit = self.element_at(point)
        if hit is None:
            self._selection = []
            return

        self._selection = [hit.id]
        self._drag = _DragGesture(
            element_id=hit.id,
            offset=Point(x=point.x - hit.x, y=point.y - hit.y),
        )
        self.history.begin()
        self._state = InteractionState.DRAGGING_ELEMENT

    def _drag_to(self, point: Point) -> None:
        element = self.get_element(self._drag.element_id)
        if element is None:
            return
        moved = _reframe(
            element,
            point.x - self._drag.offset.x,
            point.y - self._drag.offset.y,
            element.width,
            element.height,
        )
        self.history.replace(self._swap(moved))

    def _resize_to(self, point: Point) -> None:
        gesture = self._resize
        element = self.get_element(gesture.element_id)
        if element is None:
            return

        dx = point.x - gesture.start_point.x
        dy = point.y - gesture.start_point.y
        start = gesture.start_bounds
        handle = gesture.handle.value
        x, y, width, height = start

        if "w" in handle:
            x += dx
            width -= dx
        if "e" in handle:
            width += dx
        if "n" in handle:
            y += dy
            height -= dy
        if "s" in handle:
            height += dy

        # Clamp and pin the edge opposite the dragged handle
        if width < MIN_RESIZE_SIZE:
            width = MIN_RESIZE_SIZE
            if "w" in handle:
                x = start.x + start.width - MIN_RESIZE_SIZE
        if height < MIN_RESIZE_SIZE:
            height = MIN_RESIZE_SIZE
            if "n" in handle:
                y = start.y + start.height - MIN_RESIZE_SIZE

        self.history.replace(self._swap(_reframe(element, x, y, width, height)))

    def _erase_at(self, point: Point) -> None:
        target = None
        for element in reversed(self.history.present):
            if element.is_deleted or element.id in self._erased:
                continue
            if is_point_in_element(point, element):
                target = element
                break
        if target is None:
            return

        self._erased.add(target.id)
        self.history.set(tuple(el for el in self.history.present if el.id != target.id))
        if target.id in self._selection:
            self._selection = [element_id for element_id in self._selection if element_id != target.id]

    def _insert_code_block(self, point: Point) -> CodeElement:
        element = CodeElement(
            id=generate_id(),
            x=point.x,
            y=point.y,
            width=CODE_BLOCK_WIDTH,
            height=CODE_BLOCK_HEIGHT,
            stroke_color=CODE_BLOCK_STROKE,
            background_color=TRANSPARENT,
            stroke_width=self.style.stroke_width,
            stroke_style=self.style.stroke_style,
            roughness=self.style.roughness,
            opacity=1,
            code=DEFAULT_CODE,
            code_language=DEFAULT_CODE_LANGUAGE,
            code_output="",
            code_explanation="",
            is_executing=False,
        )
        self.history.set(self.history.present + (element,))
        self._selection = [element.id]
        return element

    def _shape_element(self, kind: ElementType, rect: Rect) -> ElementBase:
        if kind not in SHAPE_TYPES:
            raise ValueError(f"{kind.value} is not a shape")
        element_cls = ELEMENT_CLASSES[kind]
        return element_cls(
            id=generate_id(),
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
            stroke_color=self.style.stroke_color,
            background_color=TRANSPARENT if kind in STROKE_ONLY_TYPES else self.style.background_color,
            stroke_width=self.style.stroke_width,
            stroke_style=self.style.stroke_style,
            roughness=self.style.roughness,
            opacity=1,
        )

    def _freehand_element(self, path: Sequence[Point]) -> DrawElement:
        xs = [p.x for p in path]
        ys = [p.y for p in path]
        return DrawElement(
            id=generate_id(),
            x=min(xs),
            y=min(ys),
            width=max(xs) - min(xs),
            height=max(ys) - min(ys),
            stroke_color=self.style.stroke_color,
            background_color=TRANSPARENT,
            stroke_width=self.style.stroke_width,
            stroke_style=self.style.stroke_style,
            roughness=self.style.roughness,
            opacity=1,
            points=list(path),
        )

    def _swap(self, updated: ElementBase) -> Document:
        return tuple(updated if el.id == updated.id else el for el in self.history.present)

    def _replace_fields(self, element_id: str, **changes) -> bool:
        element = self.get_element(element_id)
        if element is None:
            return False
        self.history.replace(self._swap(element.model_copy(update=changes)))
        return True

    def _apply_analysis(self, element_id: str, analysis: CodeAnalysis) -> None:
        # The block may have been removed while the request was running
        if not self._replace_fields(
            element_id,
            code_output=analysis.output,
            code_explanation=analysis.explanation,
        ):
            logger.debug(f"Dropping analysis for removed block {element_id}")

    def _prune_selection(self) -> None:
        present = {element.id for element in self.history.present}
        self._selection = [element_id for element_id in self._selection if element_id in present]

    def _end_gesture(self) -> None:
        self._state = InteractionState.IDLE
        self._resize = None
        self._drag = None
        self._draw = None
        self._pan_last = None
        self._erased = set()

        pending, self._pending_analysis = self._pending_analysis, {}
        for element_id, analysis in pending.items():
            self._apply_analysis(element_id, analysis)
