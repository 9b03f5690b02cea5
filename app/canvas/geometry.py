"""
Geometry helpers shared by the interaction engine and the store.

Everything here is pure. Points and elements are duck-typed: anything with
``x``/``y`` (and ``width``/``height`` for elements) works.
"""

import itertools
import math
import os
import re
import secrets
import string
import struct
import time
from typing import NamedTuple, Tuple

_BASE36 = string.digits + string.ascii_lowercase
_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

# Object ids: 4-byte timestamp + 5 bytes fixed per process + 3-byte counter
_PROCESS_UNIQUE = os.urandom(5)
_object_id_counter = itertools.count(secrets.randbelow(0xFFFFFF))


class Rect(NamedTuple):
    x: float
    y: float
    width: float
    height: float


def distance(p1, p2) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def element_bounds(element) -> Tuple[float, float, float, float]:
    """Return (x1, y1, x2, y2) of an element's bounding box."""
    return (
        element.x,
        element.y,
        element.x + element.width,
        element.y + element.height,
    )


def is_point_in_element(point, element) -> bool:
    x1, y1, x2, y2 = element_bounds(element)
    return x1 <= point.x <= x2 and y1 <= point.y <= y2


def normalize_rect(start_x: float, start_y: float, end_x: float, end_y: float) -> Rect:
    """Rectangle spanned by two corners, with non-negative width and height."""
    return Rect(
        x=min(start_x, end_x),
        y=min(start_y, end_y),
        width=abs(end_x - start_x),
        height=abs(end_y - start_y),
    )


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Element id: base-36 millisecond timestamp followed by a random suffix."""
    return _to_base36(int(time.time() * 1000)) + _to_base36(secrets.randbits(52))


def new_object_id() -> str:
    """24-character hex identifier in the store's object-id layout."""
    counter = next(_object_id_counter) & 0xFFFFFF
    raw = (
        struct.pack(">I", int(time.time()) & 0xFFFFFFFF)
        + _PROCESS_UNIQUE
        + counter.to_bytes(3, "big")
    )
    return raw.hex()


def is_object_id(value: str) -> bool:
    return bool(value) and bool(_OBJECT_ID_RE.match(value))
