"""Flag FlyWire neurons to be skeletonised into the archive.

A request names neurons in one of three ways, chosen explicitly:

  ShapeIdentifierList   FlyWire root ids (skeletonised to find a position)
  CoordinateList        x, y, z positions in FlyWire voxel space
  NeuronCollection      skeletons already in hand

Every request is reduced to x, y, z positions, which are appended to the
request sheet in batches.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import numpy as np
import pandas as pd

from hemibrainpy.neurons.basics import flywire_basics, parse_xyz
from hemibrainpy.neurons.skeletons import as_neuronlist, flywire_skeletonizer
from hemibrainpy.utils import get_logger

LOG = get_logger("request")

XYZ = ["x", "y", "z"]
BATCH_SIZE = 500


# ---------------------------------------------------------------------------
# Request variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ShapeIdentifierList:
    """FlyWire root ids."""
    ids: Sequence


@dataclass(frozen=True)
class CoordinateList:
    """Positions: an (n, 3) array-like, or a DataFrame with x, y, z columns."""
    xyz: Any


@dataclass(frozen=True)
class NeuronCollection:
    """A navis.NeuronList of FlyWire skeletons."""
    neurons: Any


REQUEST_TYPES = (ShapeIdentifierList, CoordinateList, NeuronCollection)


def _xyz_frame(values):
    if isinstance(values, pd.DataFrame) and set(XYZ) <= set(values.columns):
        values = values[XYZ]
    values = np.asarray(values, dtype=float)
    if values.ndim != 2 or values.shape[1] != 3:
        raise ValueError(f"Positions must be n x 3, got shape {values.shape}")
    return pd.DataFrame(values, columns=XYZ)


def request_coordinates(request, skeletonizer: Optional[Callable] = None,
                        simplify: Optional[Callable] = None):
    """Reduce a request to a DataFrame of x, y, z positions.

    Raises
    ------
    TypeError
        If ``request`` is not one of the request variants.
    """
    if isinstance(request, CoordinateList):
        return _xyz_frame(request.xyz)
    if isinstance(request, ShapeIdentifierList):
        skeletonizer = skeletonizer or flywire_skeletonizer()
        request = NeuronCollection(as_neuronlist(skeletonizer([str(i) for i in request.ids])))
    if isinstance(request, NeuronCollection):
        meta = flywire_basics(as_neuronlist(request.neurons), simplify=simplify)
        return _xyz_frame(parse_xyz(meta["flywire_xyz"]))
    raise TypeError(
        f"Unknown request type {type(request).__name__}; use one of "
        f"{', '.join(t.__name__ for t in REQUEST_TYPES)}"
    )


# ---------------------------------------------------------------------------
# Request sheets
# ---------------------------------------------------------------------------

class CsvSheet:
    """A request sheet tab kept as a CSV file; rows are only ever appended."""

    def __init__(self, path):
        self.path = Path(path)

    def __repr__(self):
        return f"CsvSheet({str(self.path)!r})"

    def append(self, rows):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rows.to_csv(self.path, mode="a", header=not self.path.exists(), index=False)

    def read(self):
        if not self.path.exists():
            return pd.DataFrame(columns=XYZ)
        return pd.read_csv(self.path)


def sheet_for(config, sheet=None):
    """The tab ``sheet`` (default config.request_tab) of the request sheet."""
    return CsvSheet(Path(config.request_sheet) / f"{sheet or config.request_tab}.csv")


def flywire_request(request, config, sheet: Optional[str] = None,
                    appender=None, batch_size: int = BATCH_SIZE,
                    skeletonizer: Optional[Callable] = None):
    """Append the positions of requested neurons to the request sheet.

    Parameters
    ----------
    request : ShapeIdentifierList, CoordinateList or NeuronCollection
    config : ArchiveConfig
    sheet : str, optional
        Tab to append to; defaults to config.request_tab.
    appender : object with .append(DataFrame), optional
        Defaults to the CSV sheet from sheet_for.
    batch_size : int
        Rows per append.
    skeletonizer : callable, optional
        Used for ShapeIdentifierList requests.

    Returns
    -------
    int
        Number of positions appended.
    """
    if not isinstance(request, REQUEST_TYPES):
        raise TypeError(
            f"Unknown request type {type(request).__name__}; use one of "
            f"{', '.join(t.__name__ for t in REQUEST_TYPES)}"
        )
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    LOG.info("Request is %s", type(request).__name__)

    xyz = request_coordinates(request, skeletonizer=skeletonizer)
    appender = appender or sheet_for(config, sheet)
    for start in range(0, len(xyz), batch_size):
        appender.append(xyz.iloc[start:start + batch_size])
    LOG.info("%d FlyWire positions added to %s", len(xyz), appender)
    return len(xyz)
