#!/usr/bin/env python3
"""End-to-end example: separate a two-element mesh and export it with hexsplit.

Usage:
    python python_example.py [mesh.txt]

Without an argument the two unit cubes of tests/test_data/two_hex.txt are
used.  Open the written VTK files in ParaView or a similar viewer.
"""

import sys
import tempfile
from pathlib import Path

import hexsplit as hs

TEST_DATA = Path(__file__).resolve().parent.parent / "tests" / "test_data"
MESH_FILE = Path(sys.argv[1]) if len(sys.argv) > 1 else TEST_DATA / "two_hex.txt"

OUT = Path(tempfile.gettempdir()) / "hexsplit_example"
OUT.mkdir(exist_ok=True)

hs.setup_logging()

# --- 1. Load mesh ---
print(f"Loading mesh from {MESH_FILE}")
mesh = hs.load_mesh(MESH_FILE)
print(f"  {mesh.num_nodes} nodes, {mesh.num_elements} elements")

# --- 2. Separate ---
result = hs.separate_mesh(mesh, hs.SeparationConfig(check_invariants=True))
for key, value in result.summary().items():
    print(f"  {key}: {value}")

for ie in result.interfaces:
    print(f"  interface elements={ie.elements} faces={ie.faces} nodes={ie.nodes}")

# --- 3. Export ---
hs.export_hex_mesh_vtk(OUT / "original_mesh.vtk", mesh)
paths = hs.export_separated_vtk(
    result,
    OUT / "duplicated_mesh.vtk",
    OUT / "interfaces.vtk",
    hs.VtkExportConfig(shrink_factor=0.75),
)
for p in paths:
    print(f"  wrote {p}")

print("Use ParaView or similar software to visualize the generated VTK files")
