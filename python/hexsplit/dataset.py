"""HDF5 export and import of node separation results.

Stores the finished :class:`~hexsplit.mesh.SeparatedMesh` so that downstream
cohesive-element or contact solvers can pick it up without re-running the
separation.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from hexsplit.mesh import (
    NODES_PER_FACE,
    NODES_PER_HEX,
    NEGATIVE_SIDE,
    POSITIVE_SIDE,
    BoundaryFace,
    DuplicatedElement,
    InterfaceElement,
    InterfaceSide,
    NodeOrigin,
    SeparatedMesh,
)

_FORMAT_VERSION = 1


def _create_dataset(group, name: str, data: np.ndarray, comp_kwargs: dict) -> None:
    # filters need chunked storage, which empty datasets cannot use
    kwargs = comp_kwargs if data.size else {}
    group.create_dataset(name, data=data, **kwargs)


def export_separated_mesh(
    path: str | Path,
    result: SeparatedMesh,
    compression: str | None = "gzip",
    compression_level: int = 4,
) -> None:
    """Write a separation result to HDF5.

    Parameters
    ----------
    path : output HDF5 file path
    result : output of :func:`hexsplit.separate.separate_mesh`
    compression : HDF5 compression filter name (None disables)
    compression_level : compression level (1-9 for gzip)

    File layout
    -----------
    ::

        /nodes                    (8E, 3) float64
        /elements/connectivity    (E, 8)  int64
        /elements/face_directions (E, 6)  int8
        /node_origin              (8E, 3) int64   original node, element, slot
        /interfaces/connectivity  (I, 8)  int64
        /interfaces/elements      (I, 2)  int64
        /interfaces/faces         (I, 2)  int64
        /boundaries/connectivity  (B, 4)  int64
        /boundaries/elements      (B,)    int64
        /boundaries/faces         (B,)    int64
    """
    import h5py

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    comp_kwargs: dict = {}
    if compression:
        comp_kwargs["compression"] = compression
        if compression == "gzip":
            comp_kwargs["compression_opts"] = compression_level

    origin = np.array(
        [(o.original_node, o.element, o.local_index) for o in result.node_origin],
        dtype=np.int64,
    ).reshape(-1, 3)
    iface_elems = np.array([ie.elements for ie in result.interfaces], dtype=np.int64).reshape(-1, 2)
    iface_faces = np.array([ie.faces for ie in result.interfaces], dtype=np.int64).reshape(-1, 2)
    bnd_elems = np.array([bf.element for bf in result.boundaries], dtype=np.int64)
    bnd_faces = np.array([bf.face for bf in result.boundaries], dtype=np.int64)

    with h5py.File(str(path), "w") as f:
        _create_dataset(f, "nodes", np.asarray(result.nodes, dtype=np.float64), comp_kwargs)
        _create_dataset(f, "node_origin", origin, comp_kwargs)

        elem_grp = f.create_group("elements")
        _create_dataset(elem_grp, "connectivity", result.connectivity, comp_kwargs)
        _create_dataset(elem_grp, "face_directions", result.face_directions, comp_kwargs)

        iface_grp = f.create_group("interfaces")
        _create_dataset(iface_grp, "connectivity", result.interface_connectivity, comp_kwargs)
        _create_dataset(iface_grp, "elements", iface_elems, comp_kwargs)
        _create_dataset(iface_grp, "faces", iface_faces, comp_kwargs)

        bnd_grp = f.create_group("boundaries")
        _create_dataset(bnd_grp, "connectivity", result.boundary_connectivity, comp_kwargs)
        _create_dataset(bnd_grp, "elements", bnd_elems, comp_kwargs)
        _create_dataset(bnd_grp, "faces", bnd_faces, comp_kwargs)

        f.attrs["hexsplit_format_version"] = _FORMAT_VERSION
        f.attrs["num_elements"] = result.num_elements
        f.attrs["num_interfaces"] = len(result.interfaces)
        f.attrs["num_boundaries"] = len(result.boundaries)


def load_separated_mesh(path: str | Path) -> SeparatedMesh:
    """Load a separation result written by :func:`export_separated_mesh`."""
    import h5py

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"HDF5 file not found: {path}")

    with h5py.File(str(path), "r") as f:
        nodes = np.array(f["nodes"], dtype=np.float64)
        origin = np.array(f["node_origin"], dtype=np.int64)
        connectivity = np.array(f["elements/connectivity"], dtype=np.int64)
        directions = np.array(f["elements/face_directions"], dtype=np.int64)
        iface_conn = np.array(f["interfaces/connectivity"], dtype=np.int64)
        iface_elems = np.array(f["interfaces/elements"], dtype=np.int64)
        iface_faces = np.array(f["interfaces/faces"], dtype=np.int64)
        bnd_conn = np.array(f["boundaries/connectivity"], dtype=np.int64)
        bnd_elems = np.array(f["boundaries/elements"], dtype=np.int64)
        bnd_faces = np.array(f["boundaries/faces"], dtype=np.int64)

    elements = [
        DuplicatedElement(nodes=tuple(row), face_directions=list(dirs))
        for row, dirs in zip(connectivity.tolist(), directions.tolist())
    ]

    interfaces = []
    for conn, owners, faces in zip(iface_conn.tolist(), iface_elems.tolist(), iface_faces.tolist()):
        side0 = tuple(conn[:NODES_PER_FACE])
        side1 = tuple(conn[NODES_PER_FACE:NODES_PER_HEX])
        interfaces.append(
            InterfaceElement(
                elements=(owners[0], owners[1]),
                faces=(faces[0], faces[1]),
                nodes=tuple(conn),
                sides=(
                    InterfaceSide(element=owners[0], direction=NEGATIVE_SIDE, nodes=side0),
                    InterfaceSide(element=owners[1], direction=POSITIVE_SIDE, nodes=side1),
                ),
            )
        )

    boundaries = [
        BoundaryFace(element=e, face=fc, nodes=tuple(conn))
        for conn, e, fc in zip(bnd_conn.tolist(), bnd_elems.tolist(), bnd_faces.tolist())
    ]

    node_origin = [NodeOrigin(*row) for row in origin.tolist()]

    return SeparatedMesh(
        nodes=nodes,
        elements=elements,
        interfaces=interfaces,
        boundaries=boundaries,
        node_origin=node_origin,
    )
