"""Structural JSON transforms driven by conversion descriptors.

A descriptor mirrors the shape of the document it is applied to. Each key
maps to a ConversionNode:

    Rename(new_key)       move the value at this key to ``new_key``
    Enclose()             wrap the dict at this key in a one-element list
    Descend(children)     apply ``children`` to the dict at this key
    DescendEach(shapes)   apply every shape to every dict in the list at this key

Usage:
    descriptor = parse_descriptor({"data": {"folderId": "folder_id"}})
    transform_keys(document, descriptor)

Both transforms mutate the document in place. Keys that are absent (or
null) in the document are skipped; a document whose shape disagrees with
the descriptor raises StructuralMismatchError. Nested lists of lists are
not transformed.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from .exceptions import DescriptorError, StructuralMismatchError


class ConversionNode:
    """Base class for descriptor nodes."""


@dataclass
class Rename(ConversionNode):
    """Rename leaf: the key is moved to ``new_key``."""

    new_key: str


@dataclass
class Enclose(ConversionNode):
    """Enclosure leaf: a single dict becomes a one-element list."""


@dataclass
class Descend(ConversionNode):
    """Apply a nested descriptor to a child dict."""

    children: Mapping[str, ConversionNode] = field(default_factory=dict)


@dataclass
class DescendEach(ConversionNode):
    """Apply every descriptor in ``shapes`` to every item of a child list."""

    shapes: Sequence[Mapping[str, ConversionNode]] = field(default_factory=list)

    def __post_init__(self):
        if not self.shapes:
            raise DescriptorError("DescendEach needs at least one descriptor")
        self.shapes = tuple(self.shapes)


Descriptor = Mapping[str, ConversionNode]
LeafAction = Callable[[dict, str, ConversionNode], None]


def parse_descriptor(raw: Mapping[str, Any], enclose: bool = False) -> Descriptor:
    """
    Build a descriptor from plain nested dict notation.

    String leaves become Rename nodes, or Enclose nodes when ``enclose`` is
    set (the string is then ignored). Dicts become Descend nodes and lists
    of dicts become DescendEach nodes. Existing ConversionNode values are
    kept as they are.

    Args:
        raw: Nested dict/list/str structure
        enclose: Treat string leaves as enclosure markers

    Returns:
        Descriptor mapping

    Raises:
        DescriptorError: If the structure contains anything else
    """
    if not isinstance(raw, Mapping):
        raise DescriptorError(f"descriptor must be a mapping, got {type(raw).__name__}: {raw!r}")

    descriptor: dict[str, ConversionNode] = {}
    for key, value in raw.items():
        descriptor[key] = _parse_node(value, enclose)
    return descriptor


def _parse_node(value: Any, enclose: bool) -> ConversionNode:
    if isinstance(value, ConversionNode):
        return value
    if isinstance(value, str):
        return Enclose() if enclose else Rename(value)
    if isinstance(value, Mapping):
        return Descend(parse_descriptor(value, enclose))
    if isinstance(value, (list, tuple)):
        return DescendEach([parse_descriptor(shape, enclose) for shape in value])
    raise DescriptorError(f"unexpected descriptor value {type(value).__name__}: {value!r}")


def transform_keys(document: dict, descriptor: Descriptor | None) -> None:
    """
    Rename keys in ``document`` according to ``descriptor``, recursively.

    A Rename whose old key is absent is skipped. A Rename onto a key that
    already exists overwrites it.

    Raises:
        StructuralMismatchError: If the document shape disagrees with the descriptor
        DescriptorError: If the descriptor contains Enclose leaves
    """
    if descriptor is None:
        return
    _check_root(document, descriptor)
    _walk(document, descriptor, Rename, _rename_key, "rename")


def enclose(document: dict, descriptor: Descriptor | None) -> None:
    """
    Wrap single dicts in one-element lists according to ``descriptor``.

    Absent or null values are left alone. Enclosing is not idempotent: a
    value that is already a list is rejected.

    Raises:
        StructuralMismatchError: If an Enclose target holds a non-dict value,
            or the document shape disagrees with the descriptor
        DescriptorError: If the descriptor contains Rename leaves
    """
    if descriptor is None:
        return
    _check_root(document, descriptor)
    _walk(document, descriptor, Enclose, _enclose_value, "enclosure")


def _check_root(document: Any, descriptor: Descriptor) -> None:
    if not isinstance(document, dict):
        raise StructuralMismatchError(
            "descriptor doesn't match document root", descriptor, document
        )


def _walk(
    document: dict,
    descriptor: Descriptor,
    leaf_type: type,
    on_leaf: LeafAction,
    purpose: str,
) -> None:
    for key, node in descriptor.items():
        if isinstance(node, Descend):
            child = document.get(key)
            if child is None:
                continue
            if not isinstance(child, dict):
                raise StructuralMismatchError(
                    f"{purpose} descriptor expects a map at {key!r}", node, child
                )
            _walk(child, node.children, leaf_type, on_leaf, purpose)

        elif isinstance(node, DescendEach):
            child = document.get(key)
            if child is None:
                continue
            if not isinstance(child, list):
                raise StructuralMismatchError(
                    f"{purpose} descriptor expects a list at {key!r}", node, child
                )
            for item in child:
                if not isinstance(item, dict):
                    raise StructuralMismatchError(
                        f"{purpose} descriptor expects map items in {key!r}", node, item
                    )
                for shape in node.shapes:
                    _walk(item, shape, leaf_type, on_leaf, purpose)

        elif isinstance(node, leaf_type):
            on_leaf(document, key, node)

        else:
            raise DescriptorError(
                f"unexpected {type(node).__name__} at {key!r} in {purpose} descriptor"
            )


def _rename_key(document: dict, old_key: str, node: ConversionNode) -> None:
    if old_key in document:
        document[node.new_key] = document.pop(old_key)


def _enclose_value(document: dict, key: str, node: ConversionNode) -> None:
    value = document.get(key)
    if value is None:
        return
    if not isinstance(value, dict):
        raise StructuralMismatchError(
            f"given non-map to enclose at {key!r}, expected map", node, value
        )
    document[key] = [value]
