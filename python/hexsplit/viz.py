"""Visualization helpers for separated hexahedral meshes.

The geometric transforms here are presentational only: they always work on
copies and never modify a :class:`~hexsplit.mesh.SeparatedMesh`.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from hexsplit.mesh import NODES_PER_HEX, SeparatedMesh


# VTK cell type for linear hexahedron
_VTK_HEXAHEDRON = 12


def shrink_cells(
    points: NDArray,
    cells: NDArray,
    factor: float,
) -> tuple[NDArray, NDArray]:
    """Pull every cell's corners toward its centroid.

    Each cell gets its own copy of its corner points so that shared nodes
    are not moved twice.

    Parameters
    ----------
    points : (N, 3) coordinates
    cells : (M, K) connectivity
    factor : scale in (0, 1]; 1 leaves the geometry unchanged

    Returns
    -------
    points : (M*K, 3) per-cell corner coordinates
    cells : (M, K) connectivity into the returned points
    """
    if not 0.0 < factor <= 1.0:
        raise ValueError(f"Shrink factor must be in (0, 1], got {factor}")

    points = np.asarray(points, dtype=np.float64)
    cells = np.asarray(cells, dtype=np.int64)
    n_cells, width = cells.shape

    corners = points[cells]
    center = corners.mean(axis=1, keepdims=True)
    corners = center + (corners - center) * factor

    new_cells = np.arange(n_cells * width, dtype=np.int64).reshape(n_cells, width)
    return corners.reshape(-1, 3), new_cells


def face_normals(quads: NDArray) -> NDArray:
    """Unit normals of (M, 4, 3) quads from the cross product of diagonals.

    Degenerate quads get a zero normal.
    """
    d1 = quads[:, 2] - quads[:, 0]
    d2 = quads[:, 3] - quads[:, 1]
    n = np.cross(d1, d2)
    length = np.linalg.norm(n, axis=1, keepdims=True)
    return np.divide(n, length, out=np.zeros_like(n), where=length > 1e-30)


def interface_geometry(
    points: NDArray,
    interface_cells: NDArray,
    expansion: float = 0.0,
) -> tuple[NDArray, NDArray]:
    """Give each interface its own 8 points, optionally thickened.

    The first face of an interface is wound outward from its owner, so its
    normal points toward the second face.  With ``expansion > 0`` the first
    face moves back by half the distance and the second face forward by
    half, turning the flat interface into a visible hexahedron.

    Returns
    -------
    points : (8M, 3) interface corner coordinates
    cells : (M, 8) connectivity into the returned points
    """
    points = np.asarray(points, dtype=np.float64)
    interface_cells = np.asarray(interface_cells, dtype=np.int64).reshape(-1, NODES_PER_HEX)
    n_cells = interface_cells.shape[0]

    corners = points[interface_cells]
    if expansion != 0.0 and n_cells:
        offset = 0.5 * expansion * face_normals(corners[:, :4])
        corners[:, :4] -= offset[:, np.newaxis, :]
        corners[:, 4:] += offset[:, np.newaxis, :]

    cells = np.arange(n_cells * NODES_PER_HEX, dtype=np.int64).reshape(n_cells, NODES_PER_HEX)
    return corners.reshape(-1, 3), cells


def to_pyvista(points: NDArray, cells: NDArray):
    """Build a PyVista UnstructuredGrid of 8-node hexahedra."""
    import pyvista as pv

    cells = np.asarray(cells, dtype=np.int64)
    n_cells = cells.shape[0]

    # PyVista cell array format: [8, p0, ..., p7, 8, ...]
    cell_array = np.empty((n_cells, NODES_PER_HEX + 1), dtype=np.int64)
    cell_array[:, 0] = NODES_PER_HEX
    cell_array[:, 1:] = cells

    celltypes = np.full(n_cells, _VTK_HEXAHEDRON, dtype=np.uint8)
    return pv.UnstructuredGrid(cell_array.ravel(), celltypes, np.asarray(points, dtype=np.float64))


def plot_separated_mesh(
    result: SeparatedMesh,
    shrink_factor: float = 0.8,
    show_interfaces: bool = True,
    interface_expansion: float = 0.0,
    show_boundaries: bool = False,
    off_screen: bool = False,
):
    """Plot shrunk solid elements with their interfaces.

    Parameters
    ----------
    result : output of :func:`hexsplit.separate.separate_mesh`
    shrink_factor : solid element shrink toward centroid, in (0, 1]
    show_interfaces : draw interface elements in red
    interface_expansion : thickness given to interfaces along their normal
    show_boundaries : draw boundary faces as a translucent surface
    off_screen : render off-screen (for testing)

    Returns
    -------
    pyvista.Plotter
    """
    import pyvista as pv

    plotter = pv.Plotter(off_screen=off_screen)

    pts, cells = shrink_cells(result.nodes, result.connectivity, shrink_factor)
    solid = to_pyvista(pts, cells)
    solid.cell_data["element"] = np.arange(result.num_elements)
    plotter.add_mesh(solid, scalars="element", show_edges=True,
                     show_scalar_bar=False, cmap="viridis")

    if show_interfaces and result.interfaces:
        ipts, icells = interface_geometry(
            result.nodes, result.interface_connectivity, interface_expansion
        )
        plotter.add_mesh(to_pyvista(ipts, icells), color="red",
                         show_edges=True, label="Interfaces")

    if show_boundaries and result.boundaries:
        quads = result.boundary_connectivity
        faces = np.column_stack([np.full(len(quads), 4, dtype=np.int64), quads])
        surface = pv.PolyData(result.nodes, faces.ravel())
        plotter.add_mesh(surface, color="lightgray", opacity=0.3,
                         label="Boundary faces")

    plotter.add_axes()
    return plotter
