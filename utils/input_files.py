import glob
import logging
from typing import Dict, Iterator, Optional

import awkward as ak
import numpy as np
import uproot
import vector
from tabulate import tabulate
from tqdm import tqdm

from utils.schema import InputConfig

# Configure module-level logger
logger = logging.getLogger(__name__)

vector.register_awkward()

REQUIRED_PARTICLE_FIELDS = ["pt", "eta", "phi", "mass", "pdgId", "charge", "status"]


def construct_fileset(input_config: InputConfig) -> Dict[str, str]:
    """
    Expand the configured file patterns into a ``{file path: tree name}`` map.

    Parameters
    ----------
    input_config : InputConfig
        Input configuration with file patterns, tree name and ``max_files``.

    Returns
    -------
    dict
        Sorted mapping of file path to tree name.

    Raises
    ------
    FileNotFoundError
        If no file matches the configured patterns.
    """
    paths = []
    for pattern in input_config.files:
        matches = sorted(glob.glob(pattern))
        if not matches:
            logger.warning(f"No file matches pattern: {pattern}")
        paths.extend(m for m in matches if m not in paths)

    if not paths:
        raise FileNotFoundError(
            f"No input files found for patterns: {', '.join(input_config.files)}"
        )

    if input_config.max_files != -1:
        paths = paths[: input_config.max_files]

    fileset = {path: input_config.tree for path in paths}

    logger.info(
        "Fileset Summary:\n"
        + tabulate(
            [[path, tree] for path, tree in fileset.items()],
            headers=["File", "Tree"],
            tablefmt="grid",
        )
    )
    return fileset


def build_events(
    particles: ak.Array,
    weights: Optional[ak.Array] = None,
    cross_section: Optional[ak.Array] = None,
) -> ak.Array:
    """
    Assemble the event records consumed by the analyses.

    Parameters
    ----------
    particles : ak.Array
        Jagged particle records with at least the required particle fields.
        ``isDirect`` defaults to True and ``fromTau`` to False.
    weights : ak.Array, optional
        Event weights, by default 1 for every event.
    cross_section : ak.Array, optional
        Per-event generator cross-section estimate in pb.

    Returns
    -------
    ak.Array
        Events with the fields ``particles`` (``Momentum4D`` records),
        ``weight`` and, if given, ``crossSection``.
    """
    missing = [f for f in REQUIRED_PARTICLE_FIELDS if f not in particles.fields]
    if missing:
        logger.error(f"Particle fields missing from the input: {missing}")
        raise KeyError(f"Missing particle fields: {', '.join(missing)}")

    fields = {name: particles[name] for name in particles.fields}
    if "isDirect" not in fields:
        fields["isDirect"] = ak.ones_like(particles.pt, dtype=bool)
    if "fromTau" not in fields:
        fields["fromTau"] = ak.zeros_like(particles.pt, dtype=bool)

    content = {
        "particles": ak.zip(fields, with_name="Momentum4D"),
        "weight": (
            ak.Array(np.ones(len(particles)))
            if weights is None
            else ak.values_astype(weights, np.float64)
        ),
    }
    if cross_section is not None:
        content["crossSection"] = ak.values_astype(cross_section, np.float64)
    return ak.zip(content, depth_limit=1)


def _particle_field(branch: str, collection: str) -> Optional[str]:
    """
    Particle field stored in ``branch``, or None for other branches.

    Flat ntuples name the branches ``<collection>_<field>``; record branches
    written from zipped arrays use ``<collection>.<field>``.
    """
    name = branch.rsplit("/", 1)[-1]
    for separator in ("_", "."):
        prefix = f"{collection}{separator}"
        if name.startswith(prefix) and len(name) > len(prefix):
            return name[len(prefix):]
    return None


def _arrays_to_events(arrays: ak.Array, input_config: InputConfig) -> ak.Array:
    fields = {}
    for branch in arrays.fields:
        field = _particle_field(branch, input_config.particles)
        if field is not None:
            fields[field] = arrays[branch]
    if not fields:
        raise KeyError(
            f"No '{input_config.particles}' particle branches in the input"
        )
    particles = ak.zip(fields)

    weights = None
    if input_config.weight_branch:
        if input_config.weight_branch in arrays.fields:
            weights = arrays[input_config.weight_branch]
        else:
            logger.warning(
                f"Weight branch '{input_config.weight_branch}' not found, "
                "using unit weights"
            )

    cross_section = None
    if input_config.cross_section_branch:
        if input_config.cross_section_branch in arrays.fields:
            cross_section = arrays[input_config.cross_section_branch]
        else:
            logger.warning(
                f"Cross-section branch '{input_config.cross_section_branch}' not found"
            )

    return build_events(particles, weights, cross_section)


def iterate_events(
    fileset: Dict[str, str], input_config: InputConfig
) -> Iterator[ak.Array]:
    """
    Read events chunk by chunk.

    Parameters
    ----------
    fileset : dict
        Mapping of file path to tree name, see :func:`construct_fileset`.
    input_config : InputConfig
        Input configuration with branch names and ``step_size``.

    Yields
    ------
    ak.Array
        Event records as built by :func:`build_events`.
    """
    filter_name = [f"{input_config.particles}_*", f"{input_config.particles}.*"]
    for branch in (input_config.weight_branch, input_config.cross_section_branch):
        if branch:
            filter_name.append(branch)

    for file_path, tree in fileset.items():
        with uproot.open(f"{file_path}:{tree}") as f:
            total_events = f.num_entries
        logger.info(f"📂 Reading {file_path} with {total_events:,} events")

        iterable = uproot.iterate(
            f"{file_path}:{tree}",
            filter_name=filter_name,
            step_size=input_config.step_size,
            library="ak",
        )
        n_chunks = (total_events + input_config.step_size - 1) // input_config.step_size
        for arrays in tqdm(iterable, total=n_chunks, desc="Processing events", unit="chunk"):
            if len(arrays) == 0:
                continue
            yield _arrays_to_events(arrays, input_config)
