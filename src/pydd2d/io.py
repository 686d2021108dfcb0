"""> pydd2d: Configuration, input and output functions.

pydd2d reads the following kinds of files:
- pydd2d configuration files (TOML), which specify simulation parameters and the input
  and output files of a simulation, see `parse_config`
- slip plane files, which describe one slip plane and its defects, see
  `read_slip_plane`
- orientation files, with one set of Bunge Euler angles (degrees) per grain
- tessellation files in any polygon mesh format supported by `meshio`

and writes:
- defect snapshot files, with the positions of all dislocations along their slip
  planes after each step, see `DefectSnapshotWriter`
- 'SCSV' files with the statistics of each step, see `save_statistics`
- HDF5 files with the recorded stress, force and velocity histories of the
  dislocations, see `save_history`

SCSV files are our custom CSV files with a YAML header. The header is used for data
attribution and metadata, as well as a column type spec. For supported cell types,
see `SCSV_TYPEMAP`.

Slip plane files are line-oriented and whitespace-delimited. Empty lines and lines
starting with `#` are ignored. The first four lines contain the two extremities, the
normal vector and the position of the slip plane (3 values each). They are followed
by the number of dislocations and one record per dislocation, then the number of
dislocation sources and one record per source:

    # first extremity, second extremity, normal, position
    -1e-6 0 0
    1e-6 0 0
    0 1 0
    0 0 0
    # position(3) burgers(3) line(3) bmag mobile
    1
    0 0 0  1 0 0  0 0 1  2.5e-10 1
    # position(3) burgers(3) line(3) bmag tau_crit n_iterations
    1
    5e-7 0 0  1 0 0  0 0 1  2.5e-10 1e7 10

"""

import collections as c
import contextlib as cl
import csv
import functools as ft
import io
import logging
import os
import pathlib
import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from importlib.resources import files

import h5py
import meshio
import numpy as np
import yaml

from pydd2d import core as _core
from pydd2d import defects as _defects
from pydd2d import exceptions as _err
from pydd2d import logger as _log
from pydd2d import slipplane as _slipplane

SCSV_TYPEMAP = {
    "string": str,
    "integer": int,
    "float": float,
    "boolean": bool,
    "complex": complex,
}
"""Mapping of supported SCSV field types to corresponding Python types."""

_SCSV_DEFAULT_TYPE = "string"
_SCSV_DEFAULT_FILL = ""

STATISTICS_SCHEMA = {
    "delimiter": ",",
    "missing": "-",
    "fields": [
        {"name": "iteration", "type": "integer", "fill": -1},
        {"name": "time", "type": "float", "unit": "s", "fill": "NaN"},
        {"name": "dt", "type": "float", "unit": "s", "fill": "NaN"},
        {"name": "n_dislocations", "type": "integer", "fill": -1},
        {"name": "n_nucleated", "type": "integer", "fill": -1},
        {"name": "n_annihilated", "type": "integer", "fill": -1},
    ],
}
"""SCSV schema of the per-step simulation statistics, see `save_statistics`."""

_DISLOCATION_RECORD_LENGTH = 11
_SOURCE_RECORD_LENGTH = 12


def read_scsv(file):
    """Read data from an SCSV file.

    Returns a NamedTuple with columns of the csv data. See also `save_scsv`.

    """
    path = resolve_path(file)
    yaml_lines = []
    csv_lines = []
    with open(path) as fileref:
        is_yaml = False
        for line in fileref:
            if line.strip() == "":  # Empty lines are skipped.
                continue
            if line.rstrip() == "---":  # YAML section is delimited by '---' lines.
                is_yaml = not is_yaml
                continue
            (yaml_lines if is_yaml else csv_lines).append(line)

    metadata = yaml.safe_load(io.StringIO("".join(yaml_lines)))
    if not isinstance(metadata, dict) or "schema" not in metadata:
        raise _err.SCSVError(f"missing schema in YAML header of '{file}'")
    schema = metadata["schema"]
    if not _validate_scsv_schema(schema):
        raise _err.SCSVError(
            f"unable to parse SCSV schema from '{file}'."
            + " Check logging output for details."
        )
    reader = csv.reader(csv_lines, delimiter=schema["delimiter"], skipinitialspace=True)

    schema_colnames = [d["name"] for d in schema["fields"]]
    header_colnames = [s.strip() for s in next(reader)]
    if schema_colnames != header_colnames:
        raise _err.SCSVError(
            f"schema field names must match column headers in '{file}'."
            + f" You've supplied schema fields\n{schema_colnames}"
            + f"\n with column headers\n{header_colnames}"
        )

    _log.info("reading SCSV file: %s", path)
    Columns = c.namedtuple("Columns", schema_colnames)
    Columns.__str__ = lambda self: f"Columns: {self._fields}"
    Columns._schema = schema
    rows = list(reader)
    columns = zip(*rows, strict=True) if rows else [()] * len(schema_colnames)
    try:
        return Columns._make(
            [
                tuple(
                    map(
                        ft.partial(
                            _parse_scsv_cell,
                            SCSV_TYPEMAP[field.get("type", _SCSV_DEFAULT_TYPE)],
                            missingstr=schema["missing"],
                            fillval=field.get("fill", _SCSV_DEFAULT_FILL),
                        ),
                        column,
                    )
                )
                for field, column in zip(schema["fields"], columns, strict=True)
            ]
        )
    except ValueError:
        raise _err.SCSVError(
            f"invalid data in '{file}', rows must match the schema fields"
        ) from None


def write_scsv_header(stream, schema, comments=None):
    """Write YAML header to an SCSV stream.

    - `stream`: open output stream (e.g. file handle) where data should be written
    - `schema`: SCSV schema dictionary, with 'delimiter', 'missing' and 'fields' keys
    - `comments` (optional): array of comments to be written above the schema, each on
      a new line with an '#' prefix

    See also `read_scsv`, `save_scsv`.

    """
    if not _validate_scsv_schema(schema):
        raise _err.SCSVError(
            "refusing to write invalid schema to stream."
            + " Check logging output for details."
        )
    lines = ["---"]
    if comments is not None:
        lines.extend("# " + comment for comment in comments)
    lines.append("schema:")
    lines.append(f"  delimiter: '{schema['delimiter']}'")
    lines.append(f"  missing: '{schema['missing']}'")
    lines.append("  fields:")
    for field in schema["fields"]:
        lines.append(f"    - name: {field['name']}")
        lines.append(f"      type: {field.get('type', _SCSV_DEFAULT_TYPE)}")
        for key in ("unit", "fill"):
            if key in field:
                lines.append(f"      {key}: {field[key]}")
    lines.append("---")
    stream.write(os.linesep.join(lines) + os.linesep)


def save_scsv(file, schema, data, **kwargs):
    """Save data to SCSV file.

    - `file`: path to the file where the data should be written
    - `schema`: SCSV schema dictionary, with 'delimiter', 'missing' and 'fields' keys
    - `data`: data arrays (columns) of equal length

    Optional keyword arguments are passed to `write_scsv_header`. See also `read_scsv`.

    """
    path = resolve_path(file)
    if len(data) == 0:
        raise _err.SCSVError("refusing to write SCSV file without data columns")
    n_rows = len(data[0])
    if any(len(col) != n_rows for col in data[1:]):
        raise _err.SCSVError(
            "refusing to write data columns of unequal length to SCSV file"
        )
    if "fields" in schema and len(schema["fields"]) != len(data):
        raise _err.SCSVError(
            "number of fields declared in schema does not match number of data columns."
            + f" Declared schema has {len(schema['fields'])} fields;"
            + f" got {len(data)} data columns"
        )

    _log.info("writing to SCSV file: %s", file)
    with open(path, mode="w") as stream:
        try:
            write_scsv_header(stream, schema, **kwargs)
        except _err.SCSVError:
            stream.close()
            path.unlink(missing_ok=True)
            raise
        names = [field["name"] for field in schema["fields"]]
        types = [
            SCSV_TYPEMAP[field.get("type", _SCSV_DEFAULT_TYPE)]
            for field in schema["fields"]
        ]
        fills = [field.get("fill", _SCSV_DEFAULT_FILL) for field in schema["fields"]]
        writer = csv.writer(
            stream, delimiter=schema["delimiter"], lineterminator=os.linesep
        )
        writer.writerow(names)
        for row in zip(*data):
            writer.writerow(
                [
                    _format_scsv_cell(d, t, f, name, schema["missing"])
                    for d, t, f, name in zip(row, types, fills, names)
                ]
            )


def _format_scsv_cell(value, func, fillval, name, missingstr):
    try:
        _parse_scsv_cell(func, str(value), missingstr=missingstr, fillval=fillval)
    except ValueError:
        raise _err.SCSVError(
            f"invalid data for column '{name}'."
            + f" Cannot parse {value} as type '{func.__qualname__}'."
        ) from None
    if func in (float, complex):
        if np.isnan(value) and np.isnan(func(fillval)):
            return missingstr
        if value == func(fillval):
            return missingstr
    elif func in (int, str) and value == func(fillval):
        return missingstr
    return value


def save_statistics(file, results, comments=None):
    """Save a sequence of `pydd2d.polycrystal.StepResult` objects to an SCSV file."""
    names = [field["name"] for field in STATISTICS_SCHEMA["fields"]]
    save_scsv(
        file,
        STATISTICS_SCHEMA,
        [[getattr(r, name) for r in results] for name in names],
        comments=comments,
    )


def _validate_scsv_schema(schema):
    format_ok = (
        isinstance(schema, dict)
        and "delimiter" in schema
        and "missing" in schema
        and "fields" in schema
        and len(schema["fields"]) > 0
        and schema["delimiter"] != schema["missing"]
        and schema["delimiter"] not in schema["missing"]
    )
    if not format_ok:
        _log.error(
            "invalid format for SCSV schema: %s"
            + "\nMust contain: 'delimiter', 'missing', 'fields'"
            + "\nMust contain at least one field."
            + "\nMust contain compatible 'missing' and 'delimiter' values.",
            schema,
        )
        return False
    for field in schema["fields"]:
        if not str(field.get("name", "")).isidentifier():
            _log.error(
                "SCSV field name '%s' is not a valid Python identifier",
                field.get("name"),
            )
            return False
        kind = field.get("type", _SCSV_DEFAULT_TYPE)
        if kind not in SCSV_TYPEMAP:
            _log.error("unsupported SCSV field type: '%s'", kind)
            return False
        if kind not in (_SCSV_DEFAULT_TYPE, "boolean") and "fill" not in field:
            _log.error("SCSV field of type '%s' requires a fill value", kind)
            return False
    return True


def _parse_scsv_bool(x):
    """Parse boolean from string, for SCSV files."""
    return str(x).lower() in ("yes", "true", "t", "1")


def _parse_scsv_cell(func, data, missingstr=None, fillval=None):
    if data.strip() == missingstr:
        if fillval == "NaN":
            return func(np.nan)
        return func(fillval)
    elif func is bool:
        return _parse_scsv_bool(data)
    return func(data.strip())


def parse_config(path):
    """Parse a TOML file containing pydd2d configuration.

    The configuration file has the following sections, all paths are relative to the
    directory of the configuration file:
    - `name` (optional): simulation name used for default output file names
    - `[parameters]`: values for the fields of `pydd2d.core.DefaultParams`
    - `[input]`: `slip_planes` (list of slip plane files, required), `orientations`
      and `tessellation` (optional), `slip_plane_grains` (optional grain index for
      every slip plane) and `n_grains` (optional, used without a tessellation)
    - `[output]`: `directory`, `snapshots`, `statistics`, `history` (file names, the
      history is only written if a name is given), `history_length` and `log_level`

    Raises a `pydd2d.exceptions.ConfigError` for invalid configuration values.

    """
    path = resolve_path(path)
    _log.info("parsing configuration file: %s", path)
    try:
        with open(path, "rb") as file:
            toml = tomllib.load(file)
    except tomllib.TOMLDecodeError as e:
        raise _err.ConfigError(f"invalid TOML syntax in '{path}': {e}") from None

    toml["name"] = str(toml.get("name", path.stem))
    toml["parameters"] = _parse_config_params(toml)
    toml["input"] = _parse_config_input(toml, path)
    toml["output"] = _parse_config_output(toml, path)
    return toml


def resolve_path(path, refdir=None):
    """Resolve relative paths and create parent directories if necessary.

    Relative paths are interpreted with respect to the current working directory,
    i.e. the directory from whith the current Python process was executed,
    unless a specific reference directory is provided with `refdir`.

    """
    _path = (pathlib.Path.cwd() if refdir is None else pathlib.Path(refdir)) / path
    _path.parent.mkdir(parents=True, exist_ok=True)
    return _path.resolve()


def _parse_config_params(toml):
    """Parse physical and numerical simulation parameters."""
    _params = toml.get("parameters", {})
    defaults = _core.DefaultParams().as_dict()
    unknown = set(_params) - set(defaults)
    if unknown:
        raise _err.ConfigError(f"unknown simulation parameters: {sorted(unknown)}")
    for key, default in defaults.items():
        _params[key] = _params.get(key, default)

    for key in ("mu", "drag_coefficient", "min_distance", "max_time_increment"):
        if not _is_real(_params[key]) or not _params[key] > 0:
            raise _err.ConfigError(
                f"parameter '{key}' must be a positive number, not {_params[key]}"
            )
    for key in ("tau_crss", "reaction_radius"):
        if not _is_real(_params[key]) or _params[key] < 0:
            raise _err.ConfigError(
                f"parameter '{key}' must be a non-negative number, not {_params[key]}"
            )
    if not _is_real(_params["nu"]) or not -1 < _params["nu"] < 0.5:
        raise _err.ConfigError(
            f"Poisson ratio must be in the interval (-1, 0.5), not {_params['nu']}"
        )
    if (
        isinstance(_params["n_iterations"], bool)
        or not isinstance(_params["n_iterations"], int)
        or _params["n_iterations"] < 0
    ):
        raise _err.ConfigError(
            "number of iterations must be a non-negative integer,"
            + f" not {_params['n_iterations']}"
        )
    if len(_params["applied_stress"]) != 6 or not all(
        _is_real(s) for s in _params["applied_stress"]
    ):
        raise _err.ConfigError(
            "applied stress requires 6 components (xx, yy, zz, yz, xz, xy)."
            + f" You've provided applied_stress = {_params['applied_stress']}."
        )
    _params["applied_stress"] = tuple(float(s) for s in _params["applied_stress"])

    if _params["reaction_radius"] < _params["min_distance"]:
        _log.warning(
            "reaction radius (%s) is smaller than the minimum distance (%s),"
            + " opposite dislocations will not annihilate",
            _params["reaction_radius"],
            _params["min_distance"],
        )
    return _params


def _is_real(x):
    return isinstance(x, float | int) and not isinstance(x, bool)


def _parse_config_input(toml, path):
    try:
        _input = toml["input"]
    except KeyError:
        raise _err.ConfigError(f"missing [input] section in '{path}'") from None
    if "slip_planes" not in _input or len(_input["slip_planes"]) == 0:
        raise _err.ConfigError(f"no input slip plane files given in '{path}'")

    _input["slip_planes"] = [
        resolve_path(p, path.parent) for p in _input["slip_planes"]
    ]
    for key in ("orientations", "tessellation"):
        if key in _input:
            _input[key] = resolve_path(_input[key], path.parent)
        else:
            _input[key] = None

    _grains = _input.get("slip_plane_grains", None)
    if _grains is not None:
        if len(_grains) != len(_input["slip_planes"]):
            raise _err.ConfigError(
                "a grain index is required for every slip plane."
                + f" You've provided {len(_grains)} indices"
                + f" for {len(_input['slip_planes'])} slip planes."
            )
        if not all(isinstance(g, int) and g >= 0 for g in _grains):
            raise _err.ConfigError(f"invalid grain indices: {_grains}")
    _input["slip_plane_grains"] = _grains

    if "n_grains" in _input and _input["tessellation"] is not None:
        _log.warning(
            "number of grains is set by the tessellation; ignoring input n_grains"
        )
    _input["n_grains"] = _input.get("n_grains", None)
    return _input


def _parse_config_output(toml, path):
    # Output fields are optional, default: snapshots and statistics, no history.
    _output = toml.get("output", {})
    name = toml["name"]
    if "directory" in _output:
        _output["directory"] = resolve_path(_output["directory"], path.parent)
    else:
        _output["directory"] = resolve_path(pathlib.Path.cwd())
    _output["snapshots"] = _output.get("snapshots", f"{name}_snapshots.txt")
    _output["statistics"] = _output.get("statistics", f"{name}_statistics.scsv")
    _output["history"] = _output.get("history", None)
    _history_length = _output.get("history_length", None)
    if _history_length is not None and (
        not isinstance(_history_length, int) or _history_length < 1
    ):
        raise _err.ConfigError(
            f"history length must be a positive integer, not {_history_length}"
        )
    _output["history_length"] = _history_length
    # Default logging level for all log files.
    _output["log_level"] = _output.get("log_level", "WARNING")
    return _output


def _significant_lines(stream):
    for line in stream:
        _line = line.strip()
        if _line and not _line.startswith("#"):
            yield _line


def _parse_vector(line):
    values = line.split()
    if len(values) < 3:
        raise ValueError(f"expected 3 vector components, got '{line}'")
    return np.array([float(v) for v in values[:3]])


def _parse_records(tokens, length, name):
    n_records = int(next(tokens))
    if n_records < 0:
        raise ValueError(f"number of {name} must not be negative, not {n_records}")
    records = []
    for i in range(n_records):
        record = [next(tokens, None) for _ in range(length)]
        if None in record:
            raise ValueError(f"incomplete record for {name} {i}")
        records.append(record)
    return records


def read_slip_plane(path, slip_plane, history_length=None):
    """Read a slip plane and its defects from a file into `slip_plane`.

    Returns `True` on success. Returns `False` if the file cannot be read or its
    content is invalid, the reason is logged. In that case, `slip_plane` may be
    partially filled and must be discarded. See the module docstring for the format.

    """
    try:
        with open(path) as file:
            lines = list(_significant_lines(file))
        if len(lines) < 4:
            raise ValueError("expected at least 4 lines with slip plane vectors")
        slip_plane.set_extremities(_parse_vector(lines[0]), _parse_vector(lines[1]))
        slip_plane.set_normal(_parse_vector(lines[2]))
        slip_plane.set_position(_parse_vector(lines[3]))

        tokens = iter(" ".join(lines[4:]).split())
        for record in _parse_records(tokens, _DISLOCATION_RECORD_LENGTH, "dislocations"):
            mobility = int(record[10])
            if mobility not in (0, 1):
                raise ValueError(f"dislocation mobility must be 0 or 1, not {mobility}")
            slip_plane.insert_dislocation(
                _defects.Dislocation(
                    burgers=[float(v) for v in record[3:6]],
                    line=[float(v) for v in record[6:9]],
                    position=[float(v) for v in record[0:3]],
                    bmag=float(record[9]),
                    mobile=bool(mobility),
                    history_length=history_length,
                )
            )
        for record in _parse_records(tokens, _SOURCE_RECORD_LENGTH, "sources"):
            slip_plane.insert_source(
                _defects.DislocationSource(
                    burgers=[float(v) for v in record[3:6]],
                    line=[float(v) for v in record[6:9]],
                    position=[float(v) for v in record[0:3]],
                    bmag=float(record[9]),
                    tau_crit=float(record[10]),
                    n_iterations=int(record[11]),
                    history_length=history_length,
                )
            )
        trailing = list(tokens)
        if trailing:
            _log.warning(
                "ignoring %d trailing values in slip plane file %s", len(trailing), path
            )
    except OSError as e:
        _log.error("unable to open slip plane file %s: %s", path, e)
        return False
    except (ValueError, StopIteration) as e:
        _log.error(
            "invalid slip plane file %s: %s", path, str(e) or "unexpected end of file"
        )
        return False
    _log.debug(
        "read slip plane from %s with %d dislocations and %d sources",
        path,
        len(slip_plane.dislocations),
        len(slip_plane.sources),
    )
    return True


def load_slip_plane(path, history_length=None):
    """Create a new `pydd2d.slipplane.SlipPlane` from a file.

    Raises a `pydd2d.exceptions.InputError` if the file cannot be read.

    """
    slip_plane = _slipplane.SlipPlane()
    if not read_slip_plane(path, slip_plane, history_length):
        raise _err.InputError(f"failed to read slip plane from '{path}'")
    return slip_plane


def read_orientations(path):
    """Read grain orientations (Bunge Euler angles, degrees) from a file.

    Returns an array with shape (n_grains, 3). Raises a
    `pydd2d.exceptions.InputError` if the file cannot be read.

    """
    try:
        with open(path) as file:
            orientations = [_parse_vector(line) for line in _significant_lines(file)]
    except OSError as e:
        raise _err.InputError(f"unable to open orientation file '{path}': {e}") from e
    except ValueError as e:
        raise _err.InputError(f"invalid orientation file '{path}': {e}") from e
    if not orientations:
        raise _err.InputError(f"no orientations found in '{path}'")
    return np.vstack(orientations)


def read_tessellation(path):
    """Read grain boundary polygons from a mesh file.

    Every two-dimensional cell of the mesh is the boundary of one grain. Returns a list
    of arrays with the (x, y) coordinates of the polygon vertices, in cell order.
    Raises a `pydd2d.exceptions.InputError` if the file cannot be read.

    """
    try:
        mesh = meshio.read(path)
    except (OSError, meshio.ReadError) as e:
        raise _err.InputError(f"unable to read tessellation file '{path}': {e}") from e
    polygons = [
        mesh.points[cell, :2].copy()
        for block in mesh.cells
        if block.dim == 2
        for cell in block.data
    ]
    if not polygons:
        raise _err.InputError(f"no two-dimensional cells found in '{path}'")
    _log.debug("read %d grain boundary polygons from %s", len(polygons), path)
    return polygons


class DefectSnapshotWriter:
    """Writer for defect snapshots, one row per call to `write`.

    Each row starts with the simulation time and continues with the line coordinates
    of all dislocations. Rows are whitespace-delimited and their length varies with
    the number of dislocations. The writer accepts either a filename or an open text
    stream, and can be used as a context manager.

    >>> stream = io.StringIO()
    >>> with DefectSnapshotWriter(stream) as writer:
    ...     writer.write(0.5, [1e-7, 2e-7])
    >>> stream.getvalue().split()
    ['5.0000000000e-01', '1.0000000000e-07', '2.0000000000e-07']

    """

    def __init__(self, file, mode="w"):
        if isinstance(file, io.TextIOBase):
            self._stream = file
            self._owned = False
        else:
            self._stream = open(resolve_path(file), mode=mode)
            self._owned = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def write(self, time, positions):
        values = [time, *np.asarray(positions, dtype=np.float64).ravel()]
        self._stream.write(" ".join(f"{v:.10e}" for v in values) + os.linesep)

    def close(self):
        if self._owned and not self._stream.closed:
            self._stream.close()


def save_history(file, polycrystal):
    """Save the recorded histories of all dislocations in `polycrystal` to HDF5.

    Every dislocation is stored in a group named `dislocation_<defect_id>` with the
    datasets `iterations`, `stresses`, `forces` and `velocities` and attributes
    describing the dislocation (including the indices of its grain and slip plane).

    """
    path = resolve_path(file)
    _log.info("writing dislocation histories to %s", path)
    with h5py.File(path, "w") as archive:
        archive.attrs["iteration"] = polycrystal.iteration
        archive.attrs["time"] = polycrystal.time
        for g, grain in enumerate(polycrystal.grains):
            for s, slip_plane in enumerate(grain.slip_planes):
                for dislocation in slip_plane.dislocations:
                    group = archive.create_group(
                        f"dislocation_{dislocation.defect_id}"
                    )
                    group.attrs["defect_id"] = dislocation.defect_id
                    group.attrs["grain"] = g
                    group.attrs["slip_plane"] = s
                    group.attrs["bmag"] = dislocation.bmag
                    group.attrs["burgers"] = dislocation.burgers
                    group.attrs["line"] = dislocation.line
                    group.attrs["position"] = dislocation.position
                    group.attrs["mobile"] = dislocation.is_mobile
                    histories = dislocation.histories()
                    group.create_dataset(
                        "iterations", data=histories["stresses"].iterations()
                    )
                    for name, history in histories.items():
                        group.create_dataset(name, data=history.values())


def load_history(file):
    """Load dislocation histories saved with `save_history`.

    Returns a dictionary that maps defect ids to dictionaries with the datasets and
    attributes of each dislocation.

    """
    path = resolve_path(file)
    out = {}
    with h5py.File(path, "r") as archive:
        for name, group in archive.items():
            if not name.startswith("dislocation_"):
                continue
            record = {key: value for key, value in group.attrs.items()}
            for key, dataset in group.items():
                record[key] = dataset[()]
            out[int(group.attrs["defect_id"])] = record
    return out


def data(directory):
    """Get resolved path to a pydd2d data directory."""
    resources = files("pydd2d") / "data"
    if (resources / directory).is_dir():
        return resolve_path(resources / directory)
    else:
        raise NotADirectoryError(f"{resources / directory} is not a directory")


@cl.contextmanager
def logfile_enable(path, level: str | int = logging.DEBUG, mode="w"):
    """Enable logging to a file at `path` with given `level`.

    See the `pydd2d.logger` documentation for examples.

    Logging levels are documented here:
    - <https://docs.python.org/3/library/logging.html#logging-levels>

    """
    formatter = logging.Formatter(_log.PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    # Path can be an io.TextIOWrapper or io.StringIO, for testing purposes.
    logger_file: logging.StreamHandler | logging.FileHandler
    is_stream = isinstance(path, (io.StringIO, io.TextIOWrapper))
    if is_stream:
        _log.debug("enabling logging at %s level to IO stream", level)
        logger_file = logging.StreamHandler(path)
    else:
        _log.debug("enabling logging at %s level to %s", level, path)
        logger_file = logging.FileHandler(resolve_path(path), mode=mode)
    logger_file.setFormatter(formatter)
    logger_file.setLevel(level)
    _log.LOGGER.addHandler(logger_file)
    try:
        yield
    finally:
        if not is_stream:
            logger_file.close()
        _log.LOGGER.removeHandler(logger_file)


@cl.contextmanager
def log_cli_level(level: str | int, handler: logging.Handler = _log.CONSOLE_LOGGER):
    """Set console logging handler level for current context.

    See the `pydd2d.logger` documentation for examples.

    Logging levels are documented here:
    - <https://docs.python.org/3/library/logging.html#logging-levels>

    """
    default_level = handler.level
    handler.setLevel(level)
    try:
        yield
    finally:
        handler.setLevel(default_level)
