"""Tests for format probing, the CSV adapter and the command line tools."""

import io

import numpy as np
import pytest

import octio
from octio import FileType, probe, probe_path
from octio import csv_archive
from octio.__main__ import main
from octio.errors import ParseError


ARCHIVE_TEXT = (
    "# Test file\n"
    "# name: int_var\n# type: int32 scalar\n -1\n\n\n"
    "# name: int_mat\n# type: int32 matrix\n# rows: 2\n# columns: 3\n 0 1 -2\n 3 -4 5\n\n\n"
    "# name: label\n# type: string\n# elements: 1\n# length: 5\nhello\n\n\n"
)


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "data.mat"
    path.write_text(ARCHIVE_TEXT)
    return path


# =============================================================================
# Probe
# =============================================================================

class TestProbe:

    @pytest.mark.parametrize(
        "head, expected",
        [
            (b"# Created by Octave\n", FileType.OCTAVE),
            (b"\x89HDF\r\n\x1a\n", FileType.HDF5),
            (b"1.5,2.5\n", FileType.CSV),
            (b"  -3 4\n", FileType.CSV),
            (b".5\n", FileType.CSV),
            (b"+1 2\n", FileType.CSV),
            (b"MATLAB 5.0 MAT-file", FileType.UNKNOWN),
            (b"", FileType.UNKNOWN),
        ],
    )
    def test_bytes(self, head, expected):
        assert probe(io.BytesIO(head)) is expected

    def test_text_stream(self):
        assert probe(io.StringIO("# title\n")) is FileType.OCTAVE

    def test_position_restored(self):
        stream = io.StringIO("skip\n# title\n")
        stream.readline()
        pos = stream.tell()
        assert probe(stream) is FileType.OCTAVE
        assert stream.tell() == pos
        assert stream.readline() == "# title\n"

    def test_probe_path(self, archive):
        assert probe_path(archive) is FileType.OCTAVE


# =============================================================================
# CSV adapter
# =============================================================================

class TestCsvArchive:

    def test_read_vector(self):
        v = csv_archive.read_vector(io.StringIO("1 2.5\n-3\n\n4e2\n"))
        np.testing.assert_array_equal(v, [1, 2.5, -3, 400])

    def test_read_vector_invalid(self):
        with pytest.raises(ParseError) as exc:
            csv_archive.read_vector(io.StringIO("1\nx\n"))
        assert exc.value.line == 2

    def test_write_vector(self):
        buf = io.StringIO()
        csv_archive.write_vector([1.5, -2], buf)
        assert buf.getvalue() == "1.500000000000000000\n-2.000000000000000000\n"
        np.testing.assert_array_equal(
            csv_archive.read_vector(io.StringIO(buf.getvalue())), [1.5, -2]
        )

    def test_read_matrix_trailing_comma(self):
        m = csv_archive.read_matrix(io.StringIO("1,2,3,\n4,5,6,\n"))
        np.testing.assert_array_equal(m, [[1, 2, 3], [4, 5, 6]])

    def test_read_matrix_ragged(self):
        with pytest.raises(ParseError):
            csv_archive.read_matrix(io.StringIO("1,2\n3\n"))

    def test_read_matrix_empty(self):
        assert csv_archive.read_matrix(io.StringIO("\n")).shape == (0, 0)

    def test_write_matrix(self):
        buf = io.StringIO()
        m = np.array([[0.1, 2.0], [-3.5, 1e-20]])
        csv_archive.write_matrix(m, buf)
        assert buf.getvalue().splitlines()[0] == "0.1,2.0"
        np.testing.assert_array_equal(csv_archive.read_matrix(io.StringIO(buf.getvalue())), m)


# =============================================================================
# Command line
# =============================================================================

class TestCommandLine:

    def test_list(self, archive, capsys):
        assert main(["list", str(archive)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "Title: Test file",
            "  int_var: scalar int32 [1x1]",
            "  int_mat: matrix int32 [2x3]",
            "  label: string char [1x5]",
        ]

    def test_show_selected(self, archive, capsys):
        assert main(["show", str(archive), "label"]) == 0
        out = capsys.readouterr().out
        assert "label =" in out
        assert "hello" in out
        assert "int_mat" not in out

    def test_show_missing_object(self, archive, capsys):
        assert main(["show", str(archive), "nope"]) == 1
        assert "nope" in capsys.readouterr().out

    def test_probe(self, archive, tmp_path, capsys):
        csv = tmp_path / "m.csv"
        csv.write_text("1,2\n")
        assert main(["probe", str(archive), str(csv)]) == 0
        out = capsys.readouterr().out
        assert f"{archive}: octave" in out
        assert f"{csv}: csv" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["list", str(tmp_path / "missing.mat")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_csv_round_trip(self, tmp_path):
        csv = tmp_path / "m.csv"
        csv.write_text("1,2,3,\n4,5,6,\n")
        mat = tmp_path / "m.mat"
        assert main(["csv2oct", str(csv), str(mat), "-n", "m", "-t", "From CSV"]) == 0

        with octio.Reader(mat) as reader:
            assert reader.title() == "From CSV"
            assert reader.next_name() == "m"
        np.testing.assert_array_equal(octio.load(mat)["m"], [[1, 2, 3], [4, 5, 6]])

        back = tmp_path / "back.csv"
        assert main(["oct2csv", str(mat), str(back), "-n", "m"]) == 0
        assert back.read_text() == "1.0,2.0,3.0\n4.0,5.0,6.0\n"

    def test_csv2oct_column(self, tmp_path):
        csv = tmp_path / "v.csv"
        csv.write_text("1,2,3\n")
        mat = tmp_path / "v.mat"
        assert main(["csv2oct", str(csv), str(mat), "-n", "v", "--column"]) == 0
        with octio.Reader(mat) as reader:
            assert reader.next_kind() is octio.ObjectShape.COVECTOR

    def test_oct2csv_to_stdout(self, archive, capsys):
        assert main(["oct2csv", str(archive), "-", "-n", "int_mat"]) == 0
        assert capsys.readouterr().out == "0.0,1.0,-2.0\n3.0,-4.0,5.0\n"

    def test_oct2csv_missing_name(self, archive, capsys):
        assert main(["oct2csv", str(archive), "-", "-n", "int_var"]) == 1
        assert "int_var" in capsys.readouterr().out


# =============================================================================
# Plotting
# =============================================================================

class TestPlotObjects:

    def test_parse_file_spec(self):
        from octio.plot_objects import parse_file_spec

        assert parse_file_spec("lo:run.mat") == ("lo", "run.mat")
        assert parse_file_spec("run.mat") == (None, "run.mat")

    def test_load_series(self, archive):
        from octio.plot_objects import load_series

        series = load_series(archive)
        assert list(series) == ["int_mat"]
        np.testing.assert_array_equal(series["int_mat"], [[0, 3], [1, -4], [-2, 5]])

    def test_plot_to_file(self, archive, tmp_path):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")
        from octio.plot_objects import plot_objects

        output = tmp_path / "plot.png"
        plot_objects([f"run:{archive}"], output=str(output))
        assert output.exists()
