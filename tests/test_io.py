"""> pydd2d: Tests for input files, snapshots and dislocation histories."""

import io

import numpy as np
import pytest
from numpy import testing as nt

from pydd2d import core as _core
from pydd2d import defects as _defects
from pydd2d import exceptions as _err
from pydd2d import io as _io
from pydd2d import polycrystal as _polycrystal
from pydd2d import slipplane as _slipplane

SLIP_PLANE_HEADER = """\
# Extremities, normal and position.
-1e-6 0 0
1e-6 0 0
0 1 0
0 0 0
"""


def _write(path, content):
    path.write_text(content)
    return path


class TestSlipPlaneFiles:
    """Tests for reading slip planes and their defects."""

    def test_read_specfile(self, data_specs):
        slip_plane = _slipplane.SlipPlane()
        assert _io.read_slip_plane(data_specs / "slip_plane_a.txt", slip_plane)
        nt.assert_allclose(slip_plane.extremities, [[-9e-7, 0, 0], [9e-7, 0, 0]])
        nt.assert_allclose(slip_plane.normal, [0, 1, 0])
        nt.assert_allclose(slip_plane.position, [-1e-6, 0, 0])
        assert len(slip_plane.dislocations) == 3
        assert [d.is_mobile for d in slip_plane.dislocations] == [True, True, False]
        nt.assert_allclose(slip_plane.dislocations[2].burgers, [-1, 0, 0])
        assert all(d.bmag == 2.86e-10 for d in slip_plane.dislocations)
        assert slip_plane.is_sorted()
        (source,) = slip_plane.sources
        nt.assert_allclose(source.position, [5e-7, 0, 0])
        assert source.tau_crit == 1e7
        assert source.n_iterations == 3

    def test_unsorted_records(self, tmp_path):
        path = _write(
            tmp_path / "unsorted.txt",
            SLIP_PLANE_HEADER
            + "2\n"
            + "5e-7 0 0  1 0 0  0 0 1  2.5e-10 1\n"
            + "-5e-7 0 0  1 0 0  0 0 1  2.5e-10 1\n"
            + "0\n",
        )
        slip_plane = _io.load_slip_plane(path, history_length=4)
        nt.assert_allclose(slip_plane.defect_positions(), [5e-7, 1.5e-6])
        assert len(slip_plane.sources) == 0

    def test_records_across_lines(self, tmp_path):
        """Test that records are read as a stream of whitespace-delimited values."""
        path = _write(
            tmp_path / "wrapped.txt",
            SLIP_PLANE_HEADER
            + "1\n0 0 0\n1 0 0\n0 0 1\n2.5e-10 0\n"
            + "1 1e-7 0 0 1 0 0 0 0 1 2.5e-10 1e6 2\n",
        )
        slip_plane = _io.load_slip_plane(path)
        assert not slip_plane.dislocations[0].is_mobile
        assert slip_plane.sources[0].n_iterations == 2

    @pytest.mark.parametrize(
        "content",
        [
            "",  # Empty file.
            SLIP_PLANE_HEADER,  # Missing dislocation count.
            SLIP_PLANE_HEADER + "2\n0 0 0  1 0 0  0 0 1  2.5e-10 1\n0\n",  # Truncated.
            SLIP_PLANE_HEADER + "1\n0 0 0  1 0 0  0 0 1  2.5e-10 2\n0\n",  # Mobility.
            SLIP_PLANE_HEADER + "1\n0 0 0  0 0 1  0 0 1  2.5e-10 1\n0\n",  # Screw.
            SLIP_PLANE_HEADER + "1\n0 0 0  1 0 0  0 0 1  -1.0 1\n0\n",  # Burgers.
            SLIP_PLANE_HEADER + "0\n1\n0 0 0  1 0 0  0 0 1  2.5e-10 1e6\n",  # Source.
            SLIP_PLANE_HEADER + "-1\n0\n",  # Negative count.
            "-1e-6 0 0\n-1e-6 0 0\n0 1 0\n0 0 0\n0\n0\n",  # Coinciding extremities.
            "-1e-6 0\n1e-6 0 0\n0 1 0\n0 0 0\n0\n0\n",  # Short vector.
            SLIP_PLANE_HEADER + "one\n",  # Not a number.
        ],
    )
    def test_invalid(self, tmp_path, content):
        path = _write(tmp_path / "invalid.txt", content)
        assert not _io.read_slip_plane(path, _slipplane.SlipPlane())
        with pytest.raises(_err.InputError):
            _io.load_slip_plane(path)

    def test_missing_file(self, tmp_path):
        assert not _io.read_slip_plane(tmp_path / "missing.txt", _slipplane.SlipPlane())


class TestGrainFiles:
    """Tests for orientation and tessellation input files."""

    def test_read_orientations(self, data_specs):
        orientations = _io.read_orientations(data_specs / "orientations.txt")
        nt.assert_array_equal(orientations, [[0, 0, 0], [30, 0, 0]])

    def test_invalid_orientations(self, tmp_path):
        with pytest.raises(_err.InputError):
            _io.read_orientations(tmp_path / "missing.txt")
        with pytest.raises(_err.InputError):
            _io.read_orientations(_write(tmp_path / "empty.txt", "# nothing\n"))
        with pytest.raises(_err.InputError):
            _io.read_orientations(_write(tmp_path / "short.txt", "0 0\n"))

    def test_read_tessellation(self, data_specs):
        polygons = _io.read_tessellation(data_specs / "tessellation.vtk")
        assert len(polygons) == 2
        nt.assert_allclose(
            polygons[0], [[-2e-6, -1e-6], [0, -1e-6], [0, 1e-6], [-2e-6, 1e-6]]
        )
        nt.assert_allclose(polygons[1], [[0, -1e-6], [2e-6, -1e-6], [2e-6, 1e-6], [0, 1e-6]])

    def test_invalid_tessellation(self, tmp_path):
        with pytest.raises(_err.InputError):
            _io.read_tessellation(tmp_path / "missing.vtk")


class TestSnapshots:
    """Tests for the defect snapshot writer."""

    def test_stream(self):
        stream = io.StringIO()
        writer = _io.DefectSnapshotWriter(stream)
        writer.write(0.0, [])
        writer.write(1e-9, np.array([1e-7, 2e-7, 3e-7]))
        writer.close()
        assert not stream.closed  # Streams are owned by the caller.
        rows = [line.split() for line in stream.getvalue().splitlines()]
        assert [len(row) for row in rows] == [1, 4]
        nt.assert_allclose([float(v) for v in rows[1]], [1e-9, 1e-7, 2e-7, 3e-7])

    def test_file(self, tmp_path):
        path = tmp_path / "nested" / "snapshots.txt"
        with _io.DefectSnapshotWriter(path) as writer:
            writer.write(0.0, [5e-7])
        data = np.loadtxt(path)
        nt.assert_allclose(data, [0.0, 5e-7])


class TestHistory:
    """Tests for HDF5 export of dislocation histories."""

    def test_roundtrip(self, tmp_path):
        params = _core.DefaultParams().as_dict()
        polycrystal = _polycrystal.Polycrystal(applied_stress=[0, 0, 0, 0, 0, 1e7])
        polycrystal.initialize_grain_vector(2)
        dislocations = []
        for g, grain in enumerate(polycrystal.grains):
            y = 5e-7 * g
            slip_plane = _slipplane.SlipPlane([[-1e-6, y, 0], [1e-6, y, 0]])
            dislocation = _defects.Dislocation(
                [1, 0, 0], [0, 0, 1], [0, y, 0], 2.5e-10, mobile=bool(g)
            )
            slip_plane.insert_dislocation(dislocation)
            grain.insert_slip_plane(slip_plane)
            dislocations.append(dislocation)
        for _ in range(3):
            polycrystal.step(params)

        path = tmp_path / "history.h5"
        _io.save_history(path, polycrystal)
        histories = _io.load_history(path)
        assert sorted(histories) == sorted(d.defect_id for d in dislocations)
        for g, dislocation in enumerate(dislocations):
            record = histories[dislocation.defect_id]
            assert record["grain"] == g
            assert record["slip_plane"] == 0
            assert bool(record["mobile"]) == dislocation.is_mobile
            nt.assert_array_equal(record["iterations"], [0, 1, 2])
            nt.assert_allclose(record["position"], dislocation.position)
            nt.assert_allclose(record["burgers"], [1, 0, 0])
            assert record["stresses"].shape == (3, 3, 3)
            assert record["forces"].shape == (3, 3)
            nt.assert_allclose(
                record["velocities"][-1], dislocation.velocity_at_iteration(2)
            )
        # The pinned dislocation never moves.
        nt.assert_array_equal(histories[dislocations[0].defect_id]["velocities"], 0.0)


def test_data_directory(data_specs):
    assert (data_specs / "spec.toml").is_file()
    with pytest.raises(NotADirectoryError):
        _io.data("missing")
