"""Exception types raised by hexsplit."""

from __future__ import annotations


class HexsplitError(Exception):
    """Base class for all hexsplit errors."""


class InvalidMeshError(HexsplitError, ValueError):
    """Input mesh violates a structural precondition of the separation."""


class MeshFormatError(HexsplitError, ValueError):
    """A mesh file could not be parsed."""


class DuplicateFaceKeyError(HexsplitError, ValueError):
    """Two (element, face) occurrences produced the same canonical face key.

    This means the connectivity is non-manifold or degenerate: either an
    element repeats a face, or two elements traverse the same four nodes in
    the same winding.

    Attributes
    ----------
    key : the colliding 4-tuple of original node ids
    first : (element, face) that inserted the key first
    second : (element, face) that produced the collision
    """

    def __init__(
        self,
        key: tuple[int, int, int, int],
        first: tuple[int, int],
        second: tuple[int, int],
    ) -> None:
        self.key = key
        self.first = first
        self.second = second
        super().__init__(
            f"Duplicate face key {key}: element {second[0]} face {second[1]} "
            f"repeats element {first[0]} face {first[1]}"
        )
