"""JSON rendering of schemas and debug records for logs and error messages."""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    if isinstance(value, re.Pattern):
        return {"type": "RegExp", "source": value.pattern, "flags": int(value.flags)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    # Locators and anything else opaque
    return {"type": type(value).__name__, "repr": str(value)}


def to_debug_json(value: Any) -> str:
    """Indented JSON that tolerates patterns, Locators and pydantic models."""
    return json.dumps(value, indent=2, default=_default)
