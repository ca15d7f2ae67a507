"""Field probing for loosely shaped provider payloads.

Providers disagree on field names (``title`` vs ``display_title`` vs
``name``), so every target attribute is described by an ordered tuple of
accessors and resolved with :func:`first_of`.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

Accessor = Callable[[Mapping[str, Any]], Any]


def key(name: str) -> Accessor:
    return lambda source: source.get(name)


def path(*names: str) -> Accessor:
    def _get(source: Mapping[str, Any]) -> Any:
        node: Any = source
        for name in names:
            if not isinstance(node, Mapping):
                return None
            node = node.get(name)
        return node

    return _get


def keys(*names: str) -> tuple[Accessor, ...]:
    return tuple(key(name) for name in names)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def first_of(
    source: Mapping[str, Any] | None,
    accessors: Iterable[Accessor],
    transform: Callable[[Any], Any] | None = None,
) -> Any:
    if not isinstance(source, Mapping):
        return None
    for accessor in accessors:
        value = accessor(source)
        if _is_blank(value):
            continue
        if transform is not None:
            value = transform(value)
            if _is_blank(value):
                continue
        return value
    return None


def as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def as_number(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def as_mapping(value: Any) -> dict[str, Any] | None:
    if isinstance(value, dict):
        return value
    return None


def to_year(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        head = value.strip()[:4]
        # isdigit() also accepts superscripts, which int() rejects.
        if head.isdigit():
            try:
                return int(head)
            except ValueError:
                return None
    return None


def to_https(url: Any) -> str | None:
    text = as_text(url)
    if text is None:
        return None
    if text.startswith("http://"):
        return "https://" + text[len("http://"):]
    return text


def pick_str(source: Mapping[str, Any] | None, names: Iterable[str]) -> str | None:
    return first_of(source, keys(*names), as_text)


def pick_number(source: Mapping[str, Any] | None, names: Iterable[str]) -> float | int | None:
    return first_of(source, keys(*names), as_number)


def join_names(values: Any, *, field: str | None = None, sep: str = " / ") -> str | None:
    if not isinstance(values, list):
        return None
    names: list[str] = []
    for value in values:
        raw = value.get(field) if field and isinstance(value, dict) else value
        text = as_text(raw)
        if text:
            names.append(text)
    return sep.join(names) if names else None
