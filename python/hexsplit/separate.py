"""Node separation for conforming hexahedral meshes.

Every element receives its own copy of its eight nodes.  Faces that were
shared between two elements are detected by their original node ids and
replaced by an :class:`~hexsplit.mesh.InterfaceElement`; faces without a
neighbour become :class:`~hexsplit.mesh.BoundaryFace` records.

The two owners of a shared face traverse it in opposite windings, so the
neighbour's face key is one of the four rotations of the reversed key.
Slots are visited in ``(element, face)`` order and each one is consumed
exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from hexsplit.errors import DuplicateFaceKeyError
from hexsplit.mesh import (
    BOUNDARY,
    FACES_PER_HEX,
    HEX_FACE_NODES,
    NEGATIVE_SIDE,
    NODES_PER_HEX,
    POSITIVE_SIDE,
    BoundaryFace,
    DuplicatedElement,
    HexMesh,
    InterfaceElement,
    InterfaceSide,
    NodeOrigin,
    SeparatedMesh,
    validate_hex_mesh,
)

logger = logging.getLogger(__name__)

FaceKey = tuple[int, int, int, int]
FaceLookup = dict[FaceKey, tuple[int, int]]

# Reversed rotations of a face key, tried in this order.  Each permutation
# is its own inverse: slot i of the searching face coincides with slot
# perm[i] of the matched face.
FACE_PERMUTATIONS: tuple[tuple[int, int, int, int], ...] = (
    (3, 2, 1, 0),
    (2, 1, 0, 3),
    (1, 0, 3, 2),
    (0, 3, 2, 1),
)


@dataclass
class SeparationConfig:
    """Options for :func:`separate_mesh`.

    Parameters
    ----------
    validate : check the input mesh before allocating anything and raise
        :class:`~hexsplit.errors.InvalidMeshError` on bad input
    check_invariants : recount the output after the transform and raise
        ``RuntimeError`` if a face slot was lost or consumed twice
    """

    validate: bool = True
    check_invariants: bool = False


def face_key(element_nodes, face: int) -> FaceKey:
    """Original node ids of one element face in face-table order."""
    slots = HEX_FACE_NODES[face]
    return (
        int(element_nodes[slots[0]]),
        int(element_nodes[slots[1]]),
        int(element_nodes[slots[2]]),
        int(element_nodes[slots[3]]),
    )


def duplicate_nodes(
    elements: NDArray,
) -> tuple[list[DuplicatedElement], list[NodeOrigin]]:
    """Give every (element, slot) its own node id ``8 * element + slot``."""
    new_elements: list[DuplicatedElement] = []
    node_origin: list[NodeOrigin] = []
    for e, conn in enumerate(elements):
        base = NODES_PER_HEX * e
        new_elements.append(
            DuplicatedElement(nodes=tuple(range(base, base + NODES_PER_HEX)))
        )
        for s in range(NODES_PER_HEX):
            node_origin.append(NodeOrigin(int(conn[s]), e, s))
    return new_elements, node_origin


@dataclass
class FaceLookupResult:
    """Outcome of :func:`build_face_lookup`.

    Parameters
    ----------
    lookup : canonical face key -> (element, face); holds every face
        inserted before the first collision
    error : the first key collision, or None if all keys are unique
    """

    lookup: FaceLookup
    error: Optional[DuplicateFaceKeyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_duplicate(self) -> None:
        """Raise the recorded :class:`DuplicateFaceKeyError`, if any."""
        if self.error is not None:
            raise self.error


def build_face_lookup(elements: NDArray) -> FaceLookupResult:
    """Map every canonical face key to the (element, face) that owns it.

    Construction stops at the first repeated key; the collision is returned
    in :attr:`FaceLookupResult.error` instead of being raised.
    """
    lookup: FaceLookup = {}
    for e, conn in enumerate(elements):
        for f in range(FACES_PER_HEX):
            key = face_key(conn, f)
            if key in lookup:
                return FaceLookupResult(
                    lookup, DuplicateFaceKeyError(key, lookup[key], (e, f))
                )
            lookup[key] = (e, f)
    return FaceLookupResult(lookup)


def find_matching_face(
    key: FaceKey,
    element: int,
    face: int,
    lookup: FaceLookup,
) -> Optional[tuple[int, int, int]]:
    """Find the face mating with ``key``.

    Returns
    -------
    ``(element2, face2, p)`` where ``p`` indexes :data:`FACE_PERMUTATIONS`,
    or None when the face has no neighbour.  Hits on the searching element
    itself are ignored, so an element never pairs with one of its own faces.
    """
    for p, perm in enumerate(FACE_PERMUTATIONS):
        candidate = (key[perm[0]], key[perm[1]], key[perm[2]], key[perm[3]])
        hit = lookup.get(candidate)
        if hit is None or hit[0] == element:
            continue
        return hit[0], hit[1], p
    return None


def _build_interface(
    e: int,
    f: int,
    e2: int,
    f2: int,
    p: int,
    new_elements: list[DuplicatedElement],
) -> InterfaceElement:
    perm = FACE_PERMUTATIONS[p]
    this_slots = HEX_FACE_NODES[f]
    other_slots = HEX_FACE_NODES[f2]
    this_nodes = new_elements[e].nodes
    other_nodes = new_elements[e2].nodes

    side0 = tuple(this_nodes[this_slots[i]] for i in range(4))
    side1 = tuple(other_nodes[other_slots[perm[i]]] for i in range(4))

    new_elements[e].face_directions[f] = NEGATIVE_SIDE
    new_elements[e2].face_directions[f2] = POSITIVE_SIDE

    return InterfaceElement(
        elements=(e, e2),
        faces=(f, f2),
        nodes=side0 + side1,
        sides=(
            InterfaceSide(element=e, direction=NEGATIVE_SIDE, nodes=side0),
            InterfaceSide(element=e2, direction=POSITIVE_SIDE, nodes=side1),
        ),
    )


def _boundary_face(
    e: int, f: int, new_elements: list[DuplicatedElement]
) -> BoundaryFace:
    nodes = new_elements[e].nodes
    new_elements[e].face_directions[f] = BOUNDARY
    return BoundaryFace(
        element=e,
        face=f,
        nodes=tuple(nodes[s] for s in HEX_FACE_NODES[f]),
    )


def pair_faces(
    elements: NDArray,
    lookup: FaceLookup,
    new_elements: list[DuplicatedElement],
) -> tuple[list[InterfaceElement], list[BoundaryFace]]:
    """Visit every (element, face) slot once and classify it.

    Updates the face direction tags of *new_elements* in place.
    """
    n_elem = len(new_elements)
    paired = np.zeros(FACES_PER_HEX * n_elem, dtype=bool)
    interfaces: list[InterfaceElement] = []
    boundaries: list[BoundaryFace] = []

    for e in range(n_elem):
        conn = elements[e]
        for f in range(FACES_PER_HEX):
            slot = FACES_PER_HEX * e + f
            if paired[slot]:
                continue

            match = find_matching_face(face_key(conn, f), e, f, lookup)
            if match is None:
                boundaries.append(_boundary_face(e, f, new_elements))
                continue

            e2, f2, p = match
            other = FACES_PER_HEX * e2 + f2
            if paired[other]:
                logger.warning(
                    "Element %d face %d matches element %d face %d, which is "
                    "already paired; the face is shared by more than two "
                    "elements and is left unassigned",
                    e, f, e2, f2,
                )
                continue

            paired[slot] = True
            paired[other] = True
            interfaces.append(_build_interface(e, f, e2, f2, p, new_elements))

    return interfaces, boundaries


def assign_coordinates(nodes: NDArray, node_origin: list[NodeOrigin]) -> NDArray:
    """Copy each original coordinate to every node duplicated from it."""
    ids = np.fromiter(
        (o.original_node for o in node_origin), dtype=np.int64, count=len(node_origin)
    )
    return np.asarray(nodes, dtype=np.float64)[ids]


def check_separation(result: SeparatedMesh) -> None:
    """Verify the counting invariants of a separation result.

    Raises
    ------
    RuntimeError
        If any invariant does not hold.
    """
    n_elem = result.num_elements
    if len(result.node_origin) != NODES_PER_HEX * n_elem:
        raise RuntimeError(
            f"Expected {NODES_PER_HEX * n_elem} node origins, "
            f"got {len(result.node_origin)}."
        )
    consumed = 2 * len(result.interfaces) + len(result.boundaries)
    if consumed != FACES_PER_HEX * n_elem:
        raise RuntimeError(
            f"{consumed} face slots consumed, expected {FACES_PER_HEX * n_elem}; "
            f"the mesh has faces shared by more than two elements."
        )
    for i, ie in enumerate(result.interfaces):
        if ie.elements[0] == ie.elements[1]:
            raise RuntimeError(f"Interface {i} pairs element {ie.elements[0]} with itself.")


def separate_mesh(
    mesh: HexMesh,
    config: SeparationConfig | None = None,
) -> SeparatedMesh:
    """Duplicate nodes per element and insert interfaces at shared faces.

    Parameters
    ----------
    mesh : conforming hexahedral mesh
    config : separation options (None uses defaults)

    Returns
    -------
    SeparatedMesh with ``8 * E`` nodes, one interface per shared face and
    one boundary record per unshared face.

    Raises
    ------
    InvalidMeshError
        If validation is enabled and the mesh is malformed.
    DuplicateFaceKeyError
        If two face occurrences share a canonical key.
    """
    if config is None:
        config = SeparationConfig()

    if config.validate:
        validate_hex_mesh(mesh)

    elements = mesh.elements
    logger.debug(
        "Separating %d elements over %d nodes", len(elements), mesh.num_nodes
    )

    new_elements, node_origin = duplicate_nodes(elements)
    # keys use original node ids
    faces = build_face_lookup(elements)
    faces.raise_for_duplicate()
    interfaces, boundaries = pair_faces(elements, faces.lookup, new_elements)
    new_nodes = assign_coordinates(mesh.nodes, node_origin)

    result = SeparatedMesh(
        nodes=new_nodes,
        elements=new_elements,
        interfaces=interfaces,
        boundaries=boundaries,
        node_origin=node_origin,
    )

    logger.info(
        "Separated %d elements: %d interfaces, %d boundary faces",
        len(new_elements), len(interfaces), len(boundaries),
    )

    if config.check_invariants:
        check_separation(result)

    return result
