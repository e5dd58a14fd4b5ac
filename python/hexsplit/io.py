"""Mesh import and VTK export for hexsplit.

Reads conforming hexahedral meshes from the plain text format (node count,
``x y z`` rows, element count, 1-based 8-node rows) or from any volumetric
format meshio understands, and writes legacy VTK files of the original,
separated and interface meshes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import numpy as np
from numpy.typing import NDArray

from hexsplit.errors import MeshFormatError
from hexsplit.mesh import NODES_PER_HEX, HexMesh, SeparatedMesh
from hexsplit.viz import interface_geometry, shrink_cells

logger = logging.getLogger(__name__)


# Plain text hexahedral mesh
_TEXT_EXTENSIONS = {".txt", ".dat", ".hex"}

# File extensions handled by meshio
_MESHIO_EXTENSIONS = {
    ".vtk", ".vtu",   # VTK
    ".msh",           # gmsh
    ".inp",           # Abaqus
    ".bdf", ".nas",   # NASTRAN
    ".xdmf",          # XDMF
    ".med",           # Salome MED
}

_MESH_EXTENSIONS = _TEXT_EXTENSIONS | _MESHIO_EXTENSIONS


@dataclass
class VtkExportConfig:
    """Options for the VTK writers.

    Parameters
    ----------
    shrink_factor : pull each cell toward its centroid, in (0, 1];
        1.0 writes the geometry unchanged
    interface_expansion : thickness given to interface cells along the
        normal of their first face (0 keeps them flat)
    binary : write binary instead of ASCII VTK
    fmt_version : legacy VTK file version, "4.2" or "5.1"
    """

    shrink_factor: float = 1.0
    interface_expansion: float = 0.0
    binary: bool = False
    fmt_version: str = "4.2"


# ---------------------------------------------------------------------------
# Text format
# ---------------------------------------------------------------------------

class _TokenReader:
    """Sequential access to whitespace-separated tokens."""

    def __init__(self, tokens: list[str], source: str) -> None:
        self._tokens = tokens
        self._pos = 0
        self.source = source

    def _next(self, what: str) -> str:
        if self._pos >= len(self._tokens):
            raise MeshFormatError(f"{self.source}: unexpected end of data reading {what}")
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def next_int(self, what: str) -> int:
        tok = self._next(what)
        try:
            return int(tok)
        except ValueError:
            raise MeshFormatError(
                f"{self.source}: expected integer {what}, got '{tok}'"
            ) from None

    def next_float(self, what: str) -> float:
        tok = self._next(what)
        try:
            return float(tok)
        except ValueError:
            raise MeshFormatError(
                f"{self.source}: expected number for {what}, got '{tok}'"
            ) from None

    def count(self, what: str) -> int:
        n = self.next_int(what)
        if n < 0:
            raise MeshFormatError(f"{self.source}: negative {what} {n}")
        return n

    def remaining(self) -> Iterator[str]:
        return iter(self._tokens[self._pos:])


def parse_hex_mesh(text: str, source: str = "<string>") -> HexMesh:
    """Parse a mesh in the plain text format.

    Node ids in the text are 1-based and are converted to 0-based.

    Raises
    ------
    MeshFormatError
        On non-numeric tokens, negative counts, node ids below 1,
        truncated data or trailing tokens.
    """
    reader = _TokenReader(text.split(), source)

    n_nodes = reader.count("node count")
    nodes = np.empty((n_nodes, 3), dtype=np.float64)
    for i in range(n_nodes):
        for c in range(3):
            nodes[i, c] = reader.next_float(f"coordinate {c} of node {i + 1}")

    n_elem = reader.count("element count")
    elements = np.empty((n_elem, NODES_PER_HEX), dtype=np.int64)
    for e in range(n_elem):
        for s in range(NODES_PER_HEX):
            nid = reader.next_int(f"node {s + 1} of element {e + 1}")
            if nid < 1:
                raise MeshFormatError(
                    f"{source}: element {e + 1} references node {nid}; ids are 1-based"
                )
            elements[e, s] = nid - 1

    extra = list(reader.remaining())
    if extra:
        raise MeshFormatError(
            f"{source}: {len(extra)} unexpected trailing tokens starting with '{extra[0]}'"
        )

    return HexMesh(nodes=nodes, elements=elements)


def read_hex_mesh(filepath: str | Path) -> HexMesh:
    """Read a mesh in the plain text format."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Mesh file not found: {filepath}")
    mesh = parse_hex_mesh(filepath.read_text(), source=str(filepath))
    logger.debug(
        "Read %d nodes and %d elements from %s",
        mesh.num_nodes, mesh.num_elements, filepath,
    )
    return mesh


def write_hex_mesh(filepath: str | Path, mesh: HexMesh) -> None:
    """Write a mesh in the plain text format (1-based node ids)."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    lines = [str(mesh.num_nodes)]
    lines.extend(f"{x!r} {y!r} {z!r}" for x, y, z in mesh.nodes.tolist())
    lines.append(str(mesh.num_elements))
    lines.extend(" ".join(str(n + 1) for n in row) for row in mesh.elements.tolist())
    filepath.write_text("\n".join(lines) + "\n")


# ---------------------------------------------------------------------------
# meshio import
# ---------------------------------------------------------------------------

def _meshio_to_hex_mesh(mio) -> HexMesh:
    hex_blocks = [block.data for block in mio.cells if block.type == "hexahedron"]
    if not hex_blocks:
        raise RuntimeError(
            f"No 8-node hexahedra found in mesh file. Cell types: "
            f"{[b.type for b in mio.cells]}"
        )

    points = np.asarray(mio.points, dtype=np.float64)
    if points.shape[1] != 3:
        raise RuntimeError(f"Hexahedral meshes need 3-D points, got {points.shape[1]}-D.")

    skipped = sorted({b.type for b in mio.cells if b.type != "hexahedron"})
    if skipped:
        logger.info("Ignoring non-hexahedral cell blocks: %s", skipped)

    return HexMesh(nodes=points, elements=np.vstack(hex_blocks).astype(np.int64))


def load_mesh(
    filepath: str | Path,
    file_format: str | None = None,
) -> HexMesh:
    """Load a conforming hexahedral mesh from file.

    Parameters
    ----------
    filepath : path to mesh file
    file_format : meshio format name overriding extension detection
        (e.g. 'vtu', 'gmsh', 'abaqus')

    Supported formats:
    - .txt/.dat/.hex (plain text, native reader)
    - .vtk/.vtu (VTK)
    - .msh (gmsh)
    - .inp (Abaqus)
    - .bdf/.nas (NASTRAN)
    - .xdmf (XDMF)
    - .med (Salome MED)

    Only ``hexahedron`` cells are kept; other cell blocks are ignored.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Mesh file not found: {filepath}")

    ext = filepath.suffix.lower()

    if ext in _TEXT_EXTENSIONS and file_format is None:
        return read_hex_mesh(filepath)

    if file_format is None and ext not in _MESHIO_EXTENSIONS:
        raise ValueError(
            f"Unsupported mesh format '{ext}'. Supported: {sorted(_MESH_EXTENSIONS)}."
        )

    import meshio

    mio = meshio.read(str(filepath), file_format=file_format)
    return _meshio_to_hex_mesh(mio)


# ---------------------------------------------------------------------------
# VTK export
# ---------------------------------------------------------------------------

def export_vtk(
    filepath: str | Path,
    points: NDArray,
    cells: NDArray,
    config: VtkExportConfig | None = None,
    cell_data: dict[str, NDArray] | None = None,
) -> Path:
    """Write 8-node hexahedral cells as a legacy VTK unstructured grid.

    Parameters
    ----------
    filepath : output path, usually ending in ``.vtk``
    points : (N, 3) coordinates
    cells : (M, 8) connectivity
    config : export options (None uses defaults)
    cell_data : optional per-cell arrays of length M

    Returns
    -------
    Path of the written file.
    """
    import meshio

    if config is None:
        config = VtkExportConfig()

    points = np.asarray(points, dtype=np.float64)
    cells = np.asarray(cells, dtype=np.int64)
    if cells.ndim != 2 or cells.shape[1] != NODES_PER_HEX:
        raise ValueError(f"Cells must have shape (M, {NODES_PER_HEX}), got {cells.shape}")

    if config.shrink_factor != 1.0:
        points, cells = shrink_cells(points, cells, config.shrink_factor)

    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    mesh = meshio.Mesh(
        points,
        [("hexahedron", cells)],
        cell_data={k: [np.asarray(v)] for k, v in (cell_data or {}).items()},
    )
    # the generic "vtk" writer is fixed to 5.1; the format module takes a version
    meshio.vtk.write(
        str(filepath), mesh,
        fmt_version=config.fmt_version, binary=config.binary,
    )
    logger.debug("Wrote %d cells to %s", len(cells), filepath)
    return filepath


def export_hex_mesh_vtk(
    filepath: str | Path,
    mesh: HexMesh,
    config: VtkExportConfig | None = None,
) -> Path:
    """Write an input (conforming) mesh to legacy VTK."""
    return export_vtk(
        filepath, mesh.nodes, mesh.elements, config,
        cell_data={"element_id": np.arange(mesh.num_elements)},
    )


def export_separated_vtk(
    result: SeparatedMesh,
    solid_path: str | Path,
    interface_path: str | Path | None = None,
    config: VtkExportConfig | None = None,
) -> list[Path]:
    """Write the separated solids and, optionally, their interfaces.

    Solid cells carry ``element_id``; interface cells carry the two owning
    element ids.  The interface file is skipped when the mesh has no
    interfaces.

    Returns
    -------
    Paths of the files written.
    """
    if config is None:
        config = VtkExportConfig()

    written = [
        export_vtk(
            solid_path, result.nodes, result.connectivity, config,
            cell_data={"element_id": np.arange(result.num_elements)},
        )
    ]

    if interface_path is not None:
        if not result.interfaces:
            logger.info("No interfaces to write; skipping %s", interface_path)
            return written
        pts, cells = interface_geometry(
            result.nodes, result.interface_connectivity, config.interface_expansion
        )
        owners = np.array([ie.elements for ie in result.interfaces], dtype=np.int64)
        written.append(
            export_vtk(
                interface_path, pts, cells, config,
                cell_data={"solid_id1": owners[:, 0], "solid_id2": owners[:, 1]},
            )
        )

    return written
