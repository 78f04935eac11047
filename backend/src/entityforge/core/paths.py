"""Dotted-path access into operation argument trees.

Operation arguments arrive as a loosely-typed tree of mappings, lists and
scalars (e.g. ``{"data": {"entity": {"connect": {"id": "e1"}}}}``). A path
such as ``data.entity.connect.id`` names one node of that tree. List
elements are addressed with numeric segments (``data.add.0.id``).

Reads never raise; they return one of three result variants so callers
decide how a missing value is reported:

- PathFound: the path resolved to a non-null value
- PathMissing: a key is absent (or null) or a list index is out of range
- PathNotTraversable: a segment tried to descend into a scalar
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class ArgumentPath:
    """A parsed dotted path."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, path: str) -> ArgumentPath:
        """Parse a dotted path, rejecting empty segments."""
        segments = tuple(path.split("."))
        if not path or any(not s for s in segments):
            raise ValueError(f"Invalid argument path: {path!r}")
        return cls(segments)

    def prefix(self, length: int) -> str:
        return ".".join(self.segments[:length])

    def __str__(self) -> str:
        return ".".join(self.segments)


@dataclass(frozen=True)
class PathFound:
    value: Any


@dataclass(frozen=True)
class PathMissing:
    path: ArgumentPath
    segment: str
    traversed: str


@dataclass(frozen=True)
class PathNotTraversable:
    path: ArgumentPath
    segment: str
    traversed: str
    node_type: str


PathResult = Union[PathFound, PathMissing, PathNotTraversable]


@dataclass
class PathAssignmentError(Exception):
    """Raised when a value cannot be written at a path."""

    message: str
    path: str
    segment: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path!r}, segment={self.segment!r})"


def _is_sequence(node: Any) -> bool:
    return isinstance(node, Sequence) and not isinstance(node, (str, bytes))


def resolve_path(tree: Any, path: ArgumentPath | str) -> PathResult:
    """Read the value at ``path`` in ``tree``."""
    if isinstance(path, str):
        path = ArgumentPath.parse(path)

    current = tree
    for depth, segment in enumerate(path.segments):
        traversed = path.prefix(depth)

        if isinstance(current, Mapping):
            if current.get(segment) is None:
                return PathMissing(path, segment, traversed)
            current = current[segment]
            continue

        if _is_sequence(current):
            if not segment.isdigit() or int(segment) >= len(current):
                return PathMissing(path, segment, traversed)
            current = current[int(segment)]
            if current is None:
                return PathMissing(path, segment, traversed)
            continue

        return PathNotTraversable(path, segment, traversed, type(current).__name__)

    return PathFound(current)


def assign_path(tree: MutableMapping[str, Any], path: ArgumentPath | str, value: Any) -> None:
    """Write ``value`` at ``path``, creating intermediate mappings.

    Raises:
        PathAssignmentError: If an existing node on the path is not a mapping
    """
    if isinstance(path, str):
        path = ArgumentPath.parse(path)

    current: Any = tree
    for segment in path.segments[:-1]:
        child = current.get(segment)
        if child is None:
            child = {}
            current[segment] = child
        elif not isinstance(child, MutableMapping):
            raise PathAssignmentError(
                f"Cannot write through {type(child).__name__} node",
                str(path),
                segment,
            )
        current = child

    current[path.segments[-1]] = value
