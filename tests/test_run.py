"""> pydd2d: tests for simulation setup, execution and command line tools."""

import numpy as np
import pytest
from numpy import testing as nt

from pydd2d import cli as _cli
from pydd2d import exceptions as _err
from pydd2d import io as _io
from pydd2d import run as _run


def _write_config(path, data_specs, n_iterations=5):
    path.write_text(
        'name = "cli"\n'
        + "[parameters]\n"
        + "mu = 26e9\nnu = 0.347\ntau_crss = 1e6\n"
        + "min_distance = 2.5e-9\nreaction_radius = 5e-9\n"
        + f"max_time_increment = 1e-11\nn_iterations = {n_iterations}\n"
        + "applied_stress = [0.0, 0.0, 0.0, 0.0, 0.0, 5e7]\n"
        + "[input]\n"
        + f'slip_planes = ["{(data_specs / "slip_plane_a.txt").as_posix()}",'
        + f' "{(data_specs / "slip_plane_b.txt").as_posix()}"]\n'
        + f'orientations = "{(data_specs / "orientations.txt").as_posix()}"\n'
        + f'tessellation = "{(data_specs / "tessellation.vtk").as_posix()}"\n'
        + "[output]\n"
        + 'directory = "out"\nhistory = "history.h5"\nlog_level = "INFO"\n'
    )
    return path


class TestSimulate:
    """Tests for running simulations from configuration files."""

    def test_specfile(self, data_specs, tmp_path):
        config = _io.parse_config(data_specs / "spec.toml")
        config["output"]["directory"] = tmp_path
        polycrystal, results = _run.simulate(config, progress=False)
        n_iterations = config["parameters"]["n_iterations"]
        assert len(results) == n_iterations
        assert [r.iteration for r in results] == list(range(n_iterations))
        assert polycrystal.iteration == n_iterations
        nt.assert_allclose(polycrystal.time, sum(r.dt for r in results))
        max_dt = config["parameters"]["max_time_increment"]
        assert all(0 <= r.dt <= max_dt for r in results)

        _output = config["output"]
        statistics = _io.read_scsv(tmp_path / _output["statistics"])
        nt.assert_array_equal(statistics.iteration, range(n_iterations))
        nt.assert_array_equal(
            statistics.n_dislocations, [r.n_dislocations for r in results]
        )
        snapshots = (tmp_path / _output["snapshots"]).read_text().splitlines()
        assert len(snapshots) == n_iterations + 1
        assert len(snapshots[0].split()) == 1 + 5  # Time and initial dislocations.
        assert len(snapshots[-1].split()) == 1 + results[-1].n_dislocations
        histories = _io.load_history(tmp_path / _output["history"])
        defect_ids = [d.defect_id for d in polycrystal.dislocations]
        assert sorted(histories) == sorted(defect_ids)
        assert (tmp_path / f"{config['name']}.log").is_file()

    def test_setup_grain_index(self, data_specs, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[input]\n"
            + f'slip_planes = ["{(data_specs / "slip_plane_a.txt").as_posix()}"]\n'
            + "slip_plane_grains = [3]\nn_grains = 2\n"
        )
        with pytest.raises(_err.InputError):
            _run.setup(_io.parse_config(path))

    def test_setup_outside_grains(self, data_specs, tmp_path):
        slip_plane = tmp_path / "outside.txt"
        slip_plane.write_text("-1e-7 0 0\n1e-7 0 0\n0 1 0\n5e-6 0 0\n0\n0\n")
        path = tmp_path / "config.toml"
        path.write_text(
            '[input]\nslip_planes = ["outside.txt"]\n'
            + f'tessellation = "{(data_specs / "tessellation.vtk").as_posix()}"\n'
        )
        with pytest.raises(_err.InputError):
            _run.setup(_io.parse_config(path))

    def test_setup_explicit_grains(self, data_specs, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[input]\n"
            + f'slip_planes = ["{(data_specs / "slip_plane_a.txt").as_posix()}",'
            + f' "{(data_specs / "slip_plane_b.txt").as_posix()}"]\n'
            + "slip_plane_grains = [1, 1]\n"
        )
        polycrystal = _run.setup(_io.parse_config(path))
        assert len(polycrystal.grains) == 2
        assert len(polycrystal.grains[0].slip_planes) == 0
        assert len(polycrystal.grains[1].slip_planes) == 2
        assert len(polycrystal.dislocations) == 5


class TestCli:
    """Tests for the command line tools."""

    def test_simulator(self, data_specs, tmp_path, capsys):
        path = _write_config(tmp_path / "config.toml", data_specs)
        assert _cli.CLI_HANDLERS.simulator([str(path), "-q", "-l", "WARNING"]) == 0
        outdir = tmp_path / "out"
        statistics = _io.read_scsv(outdir / "cli_statistics.scsv")
        assert len(statistics.iteration) == 5
        assert (outdir / "cli_snapshots.txt").is_file()

        history = outdir / "history.h5"
        inspector = _cli.CLI_HANDLERS.history_inspector
        assert inspector([str(history)]) == 0
        histories = _io.load_history(history)
        assert f"{len(histories)} dislocation histories" in capsys.readouterr().out
        defect_id = min(histories)
        assert inspector([str(history), "-d", str(defect_id)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[-1].startswith("4: ")
        assert inspector([str(history), "-d", str(max(histories) + 1)]) == 1

    def test_simulator_invalid_config(self, tmp_path):
        path = tmp_path / "invalid.toml"
        path.write_text("[parameters]\nnu = 0.5\n")
        assert _cli.CLI_HANDLERS.simulator([str(path), "-q", "-l", "CRITICAL"]) == 1

    def test_simulator_missing_input(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[input]\nslip_planes = ["missing.txt"]\n')
        assert _cli.CLI_HANDLERS.simulator([str(path), "-q", "-l", "CRITICAL"]) == 1


def test_statistics_consistency(data_specs, tmp_path):
    """Test that the dislocation count follows from nucleations and annihilations."""
    config = _io.parse_config(data_specs / "spec.toml")
    config["output"]["directory"] = tmp_path
    config["output"]["history"] = None
    _, results = _run.simulate(config, progress=False)
    counts = np.array([r.n_dislocations for r in results])
    changes = np.array([r.n_nucleated - r.n_annihilated for r in results])
    nt.assert_array_equal(counts, 5 + np.cumsum(changes))
    assert not (tmp_path / "history.h5").exists()
