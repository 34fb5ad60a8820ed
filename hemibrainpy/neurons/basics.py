"""Per-neuron FlyWire metadata.

Root ids change with every merge or split in FlyWire, so each archived
neuron also carries a position that stays on the same cell: the first
branch point of the neuron simplified to its main branch (or its last end
point if it does not branch). That position, as "x;y;z", is what gets
recorded on the request sheet and used to re-find the neuron later.
"""

import re
from typing import Callable, Optional

import numpy as np
import pandas as pd

from hemibrainpy.utils import get_logger

LOG = get_logger("neurons.basics")

try:
    import navis
    HAS_NAVIS = True
except ImportError:
    HAS_NAVIS = False

BASICS_COLUMNS = ["flywire_id", "flywire_xyz", "FAFB_xyz", "dataset"]

_XYZ_SEPARATORS = re.compile(r"[,;: ]+")


def simplify_to_main_branch(neuron):
    """Keep the two longest neurites, i.e. the backbone plus one branch."""
    return navis.longest_neurite(neuron, n=2)


def anchor_point(neuron, simplify: Optional[Callable] = None):
    """x, y, z of the anchor position of a skeleton.

    Parameters
    ----------
    neuron : navis.TreeNeuron
    simplify : callable, optional
        neuron -> simplified neuron. Defaults to simplify_to_main_branch.

    Returns
    -------
    np.ndarray
        Shape (3,).
    """
    simple = (simplify or simplify_to_main_branch)(neuron)
    branches = simple.branch_points
    if branches is not None and len(branches):
        row = branches.iloc[0]
    else:
        ends = simple.ends
        row = (ends if ends is not None and len(ends) else simple.nodes).iloc[-1]
    return row[["x", "y", "z"]].to_numpy(dtype=float)


def format_xyz(xyz):
    return ";".join(np.format_float_positional(float(v), trim="-") for v in xyz)


def parse_xyz(positions):
    """Split "x;y;z" strings into an (n, 3) array.

    Commas, spaces and colons are accepted as separators too.
    """
    rows = []
    for position in positions:
        parts = [p for p in _XYZ_SEPARATORS.split(str(position).strip()) if p]
        if len(parts) != 3:
            raise ValueError(f"Cannot read an x, y, z position from {position!r}")
        rows.append([float(p) for p in parts])
    return np.array(rows, dtype=float).reshape(-1, 3)


def flywire_basics(neurons, simplify: Optional[Callable] = None):
    """Attach FlyWire metadata to skeletons and return it as a table.

    Each neuron gets the attributes ``flywire_id`` (its root id),
    ``flywire_xyz`` (anchor position), ``FAFB_xyz`` (reserved, empty) and
    ``dataset`` ("flywire").

    Parameters
    ----------
    neurons : navis.NeuronList
        Skeletons in FlyWire space, ids are root ids.
    simplify : callable, optional
        See anchor_point.

    Returns
    -------
    pd.DataFrame
        BASICS_COLUMNS, indexed by id (as string).
    """
    if not HAS_NAVIS:
        raise ImportError("navis is required. Install with: pip install navis")
    if not isinstance(neurons, navis.NeuronList):
        raise TypeError(f"neurons must be a navis.NeuronList, got {type(neurons).__name__}")

    records = []
    for neuron in neurons:
        record = {
            "flywire_id": str(neuron.id),
            "flywire_xyz": format_xyz(anchor_point(neuron, simplify=simplify)),
            "FAFB_xyz": "",
            "dataset": "flywire",
        }
        for key, value in record.items():
            setattr(neuron, key, value)
        records.append(record)

    meta = pd.DataFrame(records, columns=BASICS_COLUMNS)
    meta.index = pd.Index(meta["flywire_id"].tolist(), dtype=object, name="id")
    LOG.debug("Anchored %d neurons", len(meta))
    return meta
