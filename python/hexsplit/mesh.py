"""Mesh data model for hexahedral node separation.

Holds the conforming input mesh (:class:`HexMesh`), the records produced by
:func:`hexsplit.separate.separate_mesh` and the hexahedron face table that
fixes the outward winding of every face.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from hexsplit.errors import InvalidMeshError


# Local corner slots of each hexahedron face, wound so that the right-hand
# normal points out of the element.
HEX_FACE_NODES: tuple[tuple[int, int, int, int], ...] = (
    (0, 3, 2, 1),  # bottom
    (4, 5, 6, 7),  # top
    (0, 1, 5, 4),  # front
    (3, 7, 6, 2),  # back
    (0, 4, 7, 3),  # left
    (1, 2, 6, 5),  # right
)

NODES_PER_HEX = 8
FACES_PER_HEX = 6
NODES_PER_FACE = 4

# Face direction tags
BOUNDARY = 0
NEGATIVE_SIDE = -1
POSITIVE_SIDE = 1


@dataclass
class HexMesh:
    """Conforming hexahedral mesh.

    Parameters
    ----------
    nodes : (N, 3) node coordinates
    elements : (E, 8) 0-based node ids per element, ordered so that
        :data:`HEX_FACE_NODES` yields outward faces
    """

    nodes: NDArray
    elements: NDArray

    def __post_init__(self) -> None:
        try:
            self.nodes = np.asarray(self.nodes, dtype=np.float64)
            self.elements = np.asarray(self.elements)
        except (TypeError, ValueError) as exc:
            raise InvalidMeshError(f"Mesh arrays are not rectangular: {exc}") from exc

    @property
    def num_nodes(self) -> int:
        return int(self.nodes.shape[0]) if self.nodes.ndim == 2 else 0

    @property
    def num_elements(self) -> int:
        return int(self.elements.shape[0]) if self.elements.ndim == 2 else 0


def validate_hex_mesh(mesh: HexMesh) -> None:
    """Check the structural preconditions of node separation.

    Raises
    ------
    InvalidMeshError
        If the mesh is empty, has wrongly shaped arrays, non-integer
        connectivity, non-finite coordinates, node ids outside
        ``[0, num_nodes)`` or an element repeating a node id.
    """
    nodes = mesh.nodes
    elements = mesh.elements

    if elements.size == 0:
        raise InvalidMeshError("Mesh has no elements.")
    if elements.ndim != 2 or elements.shape[1] != NODES_PER_HEX:
        raise InvalidMeshError(
            f"Elements must have shape (E, {NODES_PER_HEX}), got {elements.shape}."
        )
    if not np.issubdtype(elements.dtype, np.integer):
        raise InvalidMeshError(
            f"Element connectivity must be integer, got dtype {elements.dtype}."
        )
    if nodes.ndim != 2 or nodes.shape[1] != 3:
        raise InvalidMeshError(f"Nodes must have shape (N, 3), got {nodes.shape}.")
    if not np.all(np.isfinite(nodes)):
        raise InvalidMeshError("Node coordinates contain NaN or infinite values.")

    n_nodes = nodes.shape[0]
    bad = (elements < 0) | (elements >= n_nodes)
    if np.any(bad):
        e, s = (int(v) for v in np.argwhere(bad)[0])
        raise InvalidMeshError(
            f"Element {e} slot {s} references node {int(elements[e, s])}, "
            f"outside [0, {n_nodes})."
        )

    # a hexahedron needs eight distinct corners
    ordered = np.sort(elements, axis=1)
    repeated = np.any(ordered[:, 1:] == ordered[:, :-1], axis=1)
    if np.any(repeated):
        e = int(np.flatnonzero(repeated)[0])
        raise InvalidMeshError(
            f"Element {e} is degenerate: node ids {elements[e].tolist()} are not distinct."
        )


@dataclass(frozen=True)
class NodeOrigin:
    """Where a duplicated node came from."""

    original_node: int
    element: int
    local_index: int


@dataclass
class DuplicatedElement:
    """A hexahedron with its own node copies and per-face direction tags."""

    nodes: tuple[int, ...]
    face_directions: list[int] = field(
        default_factory=lambda: [BOUNDARY] * FACES_PER_HEX
    )


@dataclass(frozen=True)
class InterfaceSide:
    """One face of an interface element, owned by a single solid element."""

    element: int
    direction: int
    nodes: tuple[int, int, int, int]


@dataclass
class InterfaceElement:
    """Connector inserted between two formerly shared hexahedron faces.

    ``nodes[:4]`` are the first side's duplicated nodes in that face's own
    winding; ``nodes[4:]`` are the second side's nodes, ordered so that
    ``nodes[i]`` and ``nodes[i + 4]`` came from the same original node.
    """

    elements: tuple[int, int]
    faces: tuple[int, int]
    nodes: tuple[int, ...]
    sides: tuple[InterfaceSide, InterfaceSide]


@dataclass(frozen=True)
class BoundaryFace:
    """An element face with no neighbour."""

    element: int
    face: int
    nodes: tuple[int, int, int, int]


@dataclass
class SeparatedMesh:
    """Result of node separation.

    Parameters
    ----------
    nodes : (8E, 3) coordinates of the duplicated nodes
    elements : duplicated elements, same order as the input
    interfaces : interface elements in discovery order
    boundaries : boundary faces in discovery order
    node_origin : one record per duplicated node, node ``i`` belongs to
        element ``i // 8`` at slot ``i % 8``
    """

    nodes: NDArray
    elements: list[DuplicatedElement]
    interfaces: list[InterfaceElement]
    boundaries: list[BoundaryFace]
    node_origin: list[NodeOrigin]

    @property
    def num_elements(self) -> int:
        return len(self.elements)

    @property
    def connectivity(self) -> NDArray:
        """(E, 8) int64 duplicated connectivity."""
        return _as_table([el.nodes for el in self.elements], NODES_PER_HEX)

    @property
    def face_directions(self) -> NDArray:
        """(E, 6) int8 direction tags."""
        table = np.zeros((len(self.elements), FACES_PER_HEX), dtype=np.int8)
        for e, el in enumerate(self.elements):
            table[e] = el.face_directions
        return table

    @property
    def interface_connectivity(self) -> NDArray:
        """(I, 8) int64 interface node ids."""
        return _as_table([ie.nodes for ie in self.interfaces], NODES_PER_HEX)

    @property
    def boundary_connectivity(self) -> NDArray:
        """(B, 4) int64 boundary face node ids."""
        return _as_table([bf.nodes for bf in self.boundaries], NODES_PER_FACE)

    @property
    def original_node_ids(self) -> NDArray:
        """(8E,) original node id of every duplicated node."""
        return np.array([o.original_node for o in self.node_origin], dtype=np.int64)

    def summary(self) -> dict[str, int]:
        return {
            "num_elements": len(self.elements),
            "num_nodes": int(self.nodes.shape[0]),
            "num_interfaces": len(self.interfaces),
            "num_boundaries": len(self.boundaries),
        }


def _as_table(rows: Sequence[Sequence[int]], width: int) -> NDArray:
    if not rows:
        return np.empty((0, width), dtype=np.int64)
    return np.asarray(rows, dtype=np.int64)


def structured_box(
    nx: int,
    ny: int,
    nz: int,
    size: ArrayLike = (1.0, 1.0, 1.0),
    origin: ArrayLike = (0.0, 0.0, 0.0),
) -> HexMesh:
    """Build a conforming block of ``nx * ny * nz`` hexahedra.

    Node ``(i, j, k)`` has id ``i + (nx + 1) * (j + (ny + 1) * k)``. Each
    element lists its bottom face counter-clockwise seen from above, then
    the top face in the same order.
    """
    if min(nx, ny, nz) < 1:
        raise ValueError(f"Cell counts must be positive, got ({nx}, {ny}, {nz}).")

    size = np.asarray(size, dtype=np.float64)
    origin = np.asarray(origin, dtype=np.float64)

    xs = np.linspace(0.0, size[0], nx + 1) + origin[0]
    ys = np.linspace(0.0, size[1], ny + 1) + origin[1]
    zs = np.linspace(0.0, size[2], nz + 1) + origin[2]
    # k slowest, i fastest
    zz, yy, xx = np.meshgrid(zs, ys, xs, indexing="ij")
    nodes = np.column_stack([xx.ravel(), yy.ravel(), zz.ravel()])

    def nid(i: int, j: int, k: int) -> int:
        return i + (nx + 1) * (j + (ny + 1) * k)

    elements = np.empty((nx * ny * nz, NODES_PER_HEX), dtype=np.int64)
    e = 0
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                elements[e] = (
                    nid(i, j, k), nid(i + 1, j, k),
                    nid(i + 1, j + 1, k), nid(i, j + 1, k),
                    nid(i, j, k + 1), nid(i + 1, j, k + 1),
                    nid(i + 1, j + 1, k + 1), nid(i, j + 1, k + 1),
                )
                e += 1

    return HexMesh(nodes=nodes, elements=elements)
