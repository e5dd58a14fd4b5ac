"""Tests for hexsplit.io mesh import and VTK export."""

import numpy as np
import pytest

from hexsplit.errors import MeshFormatError
from hexsplit.io import (
    VtkExportConfig,
    export_hex_mesh_vtk,
    export_separated_vtk,
    export_vtk,
    load_mesh,
    parse_hex_mesh,
    read_hex_mesh,
    write_hex_mesh,
)
from hexsplit.separate import separate_mesh

from conftest import TWO_HEX_ELEMENTS, TWO_HEX_NODES


TWO_HEX_TEXT = """12
0 0 0
1 0 0
1 1 0
0 1 0
0 0 1
1 0 1
1 1 1
0 1 1
2 0 0
2 1 0
2 0 1
2 1 1
2
1 2 3 4 5 6 7 8
2 9 10 3 6 11 12 7
"""


class TestParseHexMesh:
    def test_two_hex(self):
        mesh = parse_hex_mesh(TWO_HEX_TEXT)
        np.testing.assert_array_equal(mesh.nodes, TWO_HEX_NODES)
        np.testing.assert_array_equal(mesh.elements, TWO_HEX_ELEMENTS)

    def test_layout_is_free_form(self):
        text = " ".join(TWO_HEX_TEXT.split())
        mesh = parse_hex_mesh(text)
        assert mesh.num_elements == 2

    def test_truncated(self):
        text = TWO_HEX_TEXT.rsplit("\n", 2)[0]
        with pytest.raises(MeshFormatError, match="unexpected end"):
            parse_hex_mesh(text)

    def test_bad_coordinate(self):
        with pytest.raises(MeshFormatError, match="expected number"):
            parse_hex_mesh(TWO_HEX_TEXT.replace("2 1 1\n", "2 x 1\n"))

    def test_bad_count(self):
        with pytest.raises(MeshFormatError, match="expected integer node count"):
            parse_hex_mesh("twelve\n" + TWO_HEX_TEXT.split("\n", 1)[1])

    def test_negative_count(self):
        with pytest.raises(MeshFormatError, match="negative node count"):
            parse_hex_mesh("-1\n")

    def test_zero_based_id_rejected(self):
        text = TWO_HEX_TEXT.replace("1 2 3 4 5 6 7 8", "0 1 2 3 4 5 6 7")
        with pytest.raises(MeshFormatError, match="1-based"):
            parse_hex_mesh(text)

    def test_trailing_tokens(self):
        with pytest.raises(MeshFormatError, match="trailing"):
            parse_hex_mesh(TWO_HEX_TEXT + "42\n")

    def test_error_names_source(self):
        with pytest.raises(MeshFormatError, match="mesh.txt"):
            parse_hex_mesh("3\n", source="mesh.txt")


class TestReadWrite:
    def test_read(self, tmp_path):
        path = tmp_path / "two_hex.txt"
        path.write_text(TWO_HEX_TEXT)
        mesh = read_hex_mesh(path)
        np.testing.assert_array_equal(mesh.elements, TWO_HEX_ELEMENTS)

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            read_hex_mesh("/nonexistent/mesh.txt")

    def test_write_then_read(self, box_mesh, tmp_path):
        path = tmp_path / "out" / "box.dat"
        write_hex_mesh(path, box_mesh)
        mesh = read_hex_mesh(path)
        np.testing.assert_array_equal(mesh.elements, box_mesh.elements)
        np.testing.assert_array_equal(mesh.nodes, box_mesh.nodes)

    def test_written_ids_are_one_based(self, two_hex, tmp_path):
        path = tmp_path / "two_hex.txt"
        write_hex_mesh(path, two_hex)
        lines = path.read_text().splitlines()
        assert lines[0] == "12"
        assert lines[13] == "2"
        assert lines[14] == "1 2 3 4 5 6 7 8"


class TestLoadMesh:
    def test_text_extension(self, tmp_path):
        path = tmp_path / "two_hex.hex"
        path.write_text(TWO_HEX_TEXT)
        mesh = load_mesh(path)
        assert mesh.num_elements == 2

    def test_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_mesh("/nonexistent/file.vtu")

    def test_unsupported_format(self, tmp_path):
        dummy = tmp_path / "model.obj"
        dummy.write_text("dummy")
        with pytest.raises(ValueError, match="Unsupported mesh format"):
            load_mesh(dummy)

    def test_vtk_roundtrip(self, box_mesh, tmp_path):
        pytest.importorskip("meshio")
        path = tmp_path / "box.vtk"
        export_hex_mesh_vtk(path, box_mesh)
        mesh = load_mesh(path)
        np.testing.assert_array_equal(mesh.elements, box_mesh.elements)
        np.testing.assert_allclose(mesh.nodes, box_mesh.nodes)

    def test_vtu_ignores_other_cells(self, two_hex, tmp_path):
        meshio = pytest.importorskip("meshio")
        path = tmp_path / "mixed.vtu"
        meshio.Mesh(
            two_hex.nodes,
            [("hexahedron", two_hex.elements), ("quad", np.array([[0, 3, 2, 1]]))],
        ).write(str(path))
        mesh = load_mesh(path)
        np.testing.assert_array_equal(mesh.elements, two_hex.elements)

    def test_no_hexahedra(self, tmp_path):
        meshio = pytest.importorskip("meshio")
        path = tmp_path / "tet.vtu"
        points = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
        meshio.Mesh(points, [("tetra", np.array([[0, 1, 2, 3]]))]).write(str(path))
        with pytest.raises(RuntimeError, match="No 8-node hexahedra"):
            load_mesh(path)


class TestExportVtk:
    def test_legacy_ascii(self, two_hex, tmp_path):
        pytest.importorskip("meshio")
        path = export_vtk(tmp_path / "mesh.vtk", two_hex.nodes, two_hex.elements)
        text = path.read_text()
        assert text.startswith("# vtk DataFile Version 4.2\n")
        assert "\nASCII\n" in text
        assert "DATASET UNSTRUCTURED_GRID" in text
        assert "CELL_TYPES 2" in text

    def test_binary(self, two_hex, tmp_path):
        pytest.importorskip("meshio")
        config = VtkExportConfig(binary=True)
        path = export_vtk(tmp_path / "mesh.vtk", two_hex.nodes, two_hex.elements, config)
        header = path.read_bytes().split(b"\n", 3)
        assert header[0] == b"# vtk DataFile Version 4.2"
        assert header[2] == b"BINARY"
        mesh = load_mesh(path)
        np.testing.assert_array_equal(mesh.elements, two_hex.elements)
        np.testing.assert_allclose(mesh.nodes, two_hex.nodes)

    def test_format_version(self, two_hex, tmp_path):
        pytest.importorskip("meshio")
        config = VtkExportConfig(fmt_version="5.1")
        path = export_vtk(tmp_path / "mesh.vtk", two_hex.nodes, two_hex.elements, config)
        assert path.read_text().startswith("# vtk DataFile Version 5.1\n")
        mesh = load_mesh(path)
        np.testing.assert_array_equal(mesh.elements, two_hex.elements)

    def test_rejects_non_hex_cells(self, two_hex, tmp_path):
        with pytest.raises(ValueError, match="Cells must have shape"):
            export_vtk(tmp_path / "bad.vtk", two_hex.nodes, two_hex.elements[:, :4])

    def test_shrink(self, two_hex, tmp_path):
        pytest.importorskip("meshio")
        config = VtkExportConfig(shrink_factor=0.5)
        path = export_vtk(tmp_path / "shrunk.vtk", two_hex.nodes, two_hex.elements, config)
        mesh = load_mesh(path)
        assert mesh.num_nodes == 16
        first = mesh.nodes[mesh.elements[0]]
        np.testing.assert_allclose(first.min(axis=0), [0.25, 0.25, 0.25])
        np.testing.assert_allclose(first.max(axis=0), [0.75, 0.75, 0.75])


class TestExportSeparatedVtk:
    def test_writes_both_files(self, two_hex, tmp_path):
        pytest.importorskip("meshio")
        result = separate_mesh(two_hex)
        config = VtkExportConfig(shrink_factor=0.75, interface_expansion=0.1)
        paths = export_separated_vtk(
            result, tmp_path / "solids.vtk", tmp_path / "interfaces.vtk", config
        )
        assert [p.name for p in paths] == ["solids.vtk", "interfaces.vtk"]

        solids = load_mesh(paths[0])
        assert solids.num_elements == 2
        interfaces = load_mesh(paths[1])
        assert interfaces.num_elements == 1
        assert interfaces.num_nodes == 8

    def test_does_not_modify_result(self, two_hex, tmp_path):
        pytest.importorskip("meshio")
        result = separate_mesh(two_hex)
        nodes_before = result.nodes.copy()
        export_separated_vtk(
            result, tmp_path / "s.vtk", tmp_path / "i.vtk",
            VtkExportConfig(shrink_factor=0.5, interface_expansion=0.2),
        )
        np.testing.assert_array_equal(result.nodes, nodes_before)

    def test_skips_empty_interfaces(self, single_hex, tmp_path):
        pytest.importorskip("meshio")
        result = separate_mesh(single_hex)
        paths = export_separated_vtk(result, tmp_path / "s.vtk", tmp_path / "i.vtk")
        assert len(paths) == 1
        assert not (tmp_path / "i.vtk").exists()
