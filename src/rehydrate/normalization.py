from __future__ import annotations

"""
Shared normalization helpers for backend payloads.

Backend clients may hand back plain dicts, SDK TypedDicts, named tuples,
pydantic models or dataclasses; everything downstream reads them through
these helpers.
"""

from dataclasses import asdict, is_dataclass
from typing import Any, Mapping


def to_plain_dict(value: Any) -> dict[str, Any]:
    """Best-effort conversion of SDK/backend objects into plain dictionaries."""
    if isinstance(value, dict):
        return value

    if isinstance(value, Mapping):
        return dict(value)

    if hasattr(value, "model_dump"):
        try:
            dumped = value.model_dump()
            if isinstance(dumped, dict):
                return dumped
        except Exception:
            pass

    if hasattr(value, "_asdict"):
        try:
            dumped = value._asdict()
            if isinstance(dumped, Mapping):
                return dict(dumped)
        except Exception:
            pass

    if is_dataclass(value) and not isinstance(value, type):
        try:
            return asdict(value)
        except Exception:
            pass

    if hasattr(value, "__dict__"):
        try:
            return {k: v for k, v in vars(value).items() if not k.startswith("_")}
        except Exception:
            pass

    return {}


def to_jsonable(value: Any) -> Any:
    """Recursively coerce values into JSON-serializable primitives/containers."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]

    as_dict = to_plain_dict(value)
    if as_dict:
        return to_jsonable(as_dict)

    return repr(value)


def extract_text_from_content(content: Any) -> str:
    """Extract plain text from string or content-part list shapes."""
    if content is None:
        return ""

    if isinstance(content, str):
        return content

    if isinstance(content, (list, tuple)):
        out: list[str] = []
        for item in content:
            if isinstance(item, str):
                out.append(item)
                continue

            part = to_plain_dict(item)
            if part.get("type") not in (None, "text", "output_text", "text_delta"):
                continue
            text = part.get("text")
            if isinstance(text, str):
                out.append(text)
        return "".join(out)

    part = to_plain_dict(content)
    text = part.get("text")
    if isinstance(text, str):
        return text

    return ""


def get_field(obj: Any, name: str, default: Any = None) -> Any:
    """Read `name` from a mapping or an attribute object."""
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def get_str(obj: Any, name: str) -> str | None:
    """Like `get_field`, returning non-empty strings only."""
    value = get_field(obj, name)
    return value if isinstance(value, str) and value else None
