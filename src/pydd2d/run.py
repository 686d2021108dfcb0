"""> pydd2d: Set up and run dislocation dynamics simulations from configuration files.

The configuration format is documented in `pydd2d.io.parse_config`.
A simulation is assembled from the input files in the following order:
1. the tessellation (if given) defines the grains and their boundary polygons,
   otherwise `n_grains` grains without boundaries are created
2. the orientations (if given) are assigned to the grains, in order
3. every slip plane file is read and the slip plane is assigned to a grain, either
   using the explicit `slip_plane_grains` indices, or by locating the slip plane
   position (in the base frame) in the tessellation, or to the first grain

"""

import contextlib as cl
import time

from tqdm import tqdm

from pydd2d import exceptions as _err
from pydd2d import io as _io
from pydd2d import logger as _log
from pydd2d import polycrystal as _polycrystal
from pydd2d import utils as _utils


def setup(config):
    """Create a `pydd2d.polycrystal.Polycrystal` from a parsed configuration.

    Raises a `pydd2d.exceptions.InputError` if any of the input files are unusable.

    """
    params = config["parameters"]
    _input = config["input"]
    history_length = config["output"]["history_length"]
    polycrystal = _polycrystal.Polycrystal(
        applied_stress=params["applied_stress"], history_length=history_length
    )

    if _input["tessellation"] is not None:
        polycrystal.set_tessellation(_io.read_tessellation(_input["tessellation"]))
        polycrystal.initialize_grain_vector()
        polycrystal.set_grain_boundaries()
    else:
        n_grains = _input["n_grains"]
        if n_grains is None:
            _indices = _input["slip_plane_grains"]
            n_grains = 1 if _indices is None else max(_indices) + 1
        polycrystal.initialize_grain_vector(n_grains)

    if _input["orientations"] is not None:
        polycrystal.set_orientations(_io.read_orientations(_input["orientations"]))
        try:
            polycrystal.set_grain_orientations()
        except ValueError as e:
            raise _err.InputError(str(e)) from None

    for i, path in enumerate(_input["slip_planes"]):
        slip_plane = _io.load_slip_plane(path, history_length)
        if _input["slip_plane_grains"] is not None:
            g = _input["slip_plane_grains"][i]
            if g >= len(polycrystal.grains):
                raise _err.InputError(
                    f"grain index {g} for slip plane '{path}' is out of range"
                    + f" for {len(polycrystal.grains)} grains"
                )
        elif _input["tessellation"] is not None:
            g = polycrystal.locate_grain(slip_plane.position)
            if g is None:
                raise _err.InputError(
                    f"slip plane '{path}' at {slip_plane.position}"
                    + " is not located inside any grain"
                )
        else:
            g = 0
        polycrystal.grains[g].insert_slip_plane(slip_plane)

    _log.info(
        "set up polycrystal with %d grains and %d dislocations",
        len(polycrystal.grains),
        len(polycrystal.dislocations),
    )
    return polycrystal


def simulate(config, ncpus=1, progress=True):
    """Run the simulation described by a parsed configuration.

    Writes the defect snapshots, the step statistics and (optionally) the dislocation
    histories to the output directory. If `ncpus` is larger than 1, stress evaluation
    is distributed over a process pool. Returns the final polycrystal and the list of
    `pydd2d.polycrystal.StepResult` objects.

    """
    begin = time.perf_counter()
    params = config["parameters"]
    _output = config["output"]
    outdir = _output["directory"]
    polycrystal = setup(config)

    results = []
    with cl.ExitStack() as stack:
        stack.enter_context(
            _io.logfile_enable(
                outdir / f"{config['name']}.log", level=_output["log_level"]
            )
        )
        writer = stack.enter_context(
            _io.DefectSnapshotWriter(outdir / _output["snapshots"])
        )
        pool = None
        if ncpus > 1:
            Pool, has_ray = _utils.import_proc_pool()
            _log.info(
                "using %s process pool with %d workers",
                "Ray" if has_ray else "multiprocessing",
                ncpus,
            )
            pool = stack.enter_context(Pool(processes=ncpus))

        writer.write(polycrystal.time, polycrystal.defect_positions())
        polycrystal.snapshot_writer = writer
        try:
            for _ in tqdm(
                range(params["n_iterations"]),
                desc=f"Simulating {config['name']}",
                disable=not progress,
            ):
                results.append(polycrystal.step(params, ncpus=ncpus, pool=pool))
        finally:
            polycrystal.snapshot_writer = None

    _io.save_statistics(
        outdir / _output["statistics"],
        results,
        comments=[f"statistics of pydd2d simulation '{config['name']}'"],
    )
    if _output["history"] is not None:
        _io.save_history(outdir / _output["history"], polycrystal)

    _log.info(
        "completed %d iterations in %.1f s (simulation time %s s)",
        len(results),
        time.perf_counter() - begin,
        polycrystal.time,
    )
    return polycrystal, results
