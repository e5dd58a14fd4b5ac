"""hexsplit: node separation and interface insertion for hexahedral meshes."""

from hexsplit.errors import (
    HexsplitError,
    InvalidMeshError,
    MeshFormatError,
    DuplicateFaceKeyError,
)
from hexsplit.mesh import (
    HEX_FACE_NODES,
    HexMesh,
    NodeOrigin,
    DuplicatedElement,
    InterfaceSide,
    InterfaceElement,
    BoundaryFace,
    SeparatedMesh,
    structured_box,
    validate_hex_mesh,
)
from hexsplit.separate import (
    FACE_PERMUTATIONS,
    FaceLookupResult,
    SeparationConfig,
    separate_mesh,
    check_separation,
)
from hexsplit.io import (
    VtkExportConfig,
    load_mesh,
    read_hex_mesh,
    write_hex_mesh,
    export_vtk,
    export_hex_mesh_vtk,
    export_separated_vtk,
)
from hexsplit.dataset import export_separated_mesh, load_separated_mesh
from hexsplit.viz import plot_separated_mesh
from hexsplit.log import setup_logging

__version__ = "0.1.0"

__all__ = [
    # Errors
    "HexsplitError",
    "InvalidMeshError",
    "MeshFormatError",
    "DuplicateFaceKeyError",
    # Data model
    "HEX_FACE_NODES",
    "HexMesh",
    "NodeOrigin",
    "DuplicatedElement",
    "InterfaceSide",
    "InterfaceElement",
    "BoundaryFace",
    "SeparatedMesh",
    "structured_box",
    "validate_hex_mesh",
    # Separation
    "FACE_PERMUTATIONS",
    "FaceLookupResult",
    "SeparationConfig",
    "separate_mesh",
    "check_separation",
    # I/O
    "VtkExportConfig",
    "load_mesh",
    "read_hex_mesh",
    "write_hex_mesh",
    "export_vtk",
    "export_hex_mesh_vtk",
    "export_separated_vtk",
    # HDF5
    "export_separated_mesh",
    "load_separated_mesh",
    # Visualization
    "plot_separated_mesh",
    "setup_logging",
]
