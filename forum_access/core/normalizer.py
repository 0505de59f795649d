"""
Normalization of stored role permission fields.

A role's ``permissions`` column may hold a proper array, an array wrapping a
single PostgreSQL-style literal (``["{a,b}"]``) or the bare literal
(``"{a,b}"``). ``classify_permissions`` maps raw input onto one of three
shapes and ``normalize_permissions`` turns any shape into an ordered, unique
token list. Unrecognized input always yields an empty list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from forum_access.core.exceptions import MalformedPermissionDataError


@dataclass(frozen=True)
class CanonicalShape:
    tokens: tuple[Any, ...]


@dataclass(frozen=True)
class LegacyBracedShape:
    text: str


@dataclass(frozen=True)
class UnrecognizedShape:
    raw_type: str


PermissionShape = Union[CanonicalShape, LegacyBracedShape, UnrecognizedShape]


def _is_braced(value: Any) -> bool:
    return isinstance(value, str) and len(value) >= 2 and value.startswith("{") and value.endswith("}")


def classify_permissions(raw: Any) -> PermissionShape:
    """Decide which stored shape ``raw`` has. Never raises."""
    if raw is None or raw == "":
        return CanonicalShape(())

    if isinstance(raw, (list, tuple)):
        if not raw or not _is_braced(raw[0]):
            return CanonicalShape(tuple(raw))
        if len(raw) == 1:
            return LegacyBracedShape(raw[0])
        return UnrecognizedShape(type(raw).__name__)

    if _is_braced(raw):
        return LegacyBracedShape(raw)

    return UnrecognizedShape(type(raw).__name__)


def _split_braced(text: str) -> list[str]:
    inner = text[1:-1]
    if not inner.strip():
        return []
    return [part.strip().strip('"').strip() for part in inner.split(",")]


def _ordered_unique(tokens) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for token in tokens:
        if not isinstance(token, str):
            continue
        token = token.strip()
        # A nested literal would be re-read as a legacy shape on the next pass
        if not token or _is_braced(token) or token in seen:
            continue
        seen.add(token)
        result.append(token)
    return result


def tokens_for_shape(shape: PermissionShape) -> list[str]:
    if isinstance(shape, CanonicalShape):
        return _ordered_unique(shape.tokens)
    if isinstance(shape, LegacyBracedShape):
        return _ordered_unique(_split_braced(shape.text))
    return []


def normalize_permissions(raw: Any) -> list[str]:
    """Return the canonical token list for a stored permission field.

    Pure and idempotent: ``normalize_permissions(normalize_permissions(x))``
    equals ``normalize_permissions(x)`` for every input.
    """
    return tokens_for_shape(classify_permissions(raw))


def normalize_permissions_strict(raw: Any, role_name: Optional[str] = None) -> list[str]:
    """Like ``normalize_permissions`` but raise on unrecognized input.

    Used by maintenance tooling that rewrites stored data, where silently
    turning a field into ``[]`` would lose information.
    """
    shape = classify_permissions(raw)
    if isinstance(shape, UnrecognizedShape):
        raise MalformedPermissionDataError(role_name=role_name, raw_type=shape.raw_type)
    return tokens_for_shape(shape)
