"""Archived NBLAST matrices on the hemibrain drive.

Each NBLAST variant is one CSV matrix under <storage_root>/hemibrain_nblast,
labels in the first column and header row. An update reads the whole
matrix once and replaces it wholesale.
"""

import pandas as pd

from hemibrainpy.bench.dataset import LocalDataset
from hemibrainpy.utils import get_logger

LOG = get_logger("nblast.archive")

NBLAST_FOLDER = "hemibrain_nblast"

NBLAST_FILES = {
    "hemibrain-flywire": "hemibrain_flywire_mean_nblast",
    "flywire": "flywire_mean_nblast",
    "flywire-mirror": "flywire_mirror_mean_nblast",
}
"""NBLAST variant -> file stem."""


def _check_variant(nblast):
    if nblast not in NBLAST_FILES:
        raise ValueError(
            f"Unknown NBLAST '{nblast}'. Choose one of: {', '.join(NBLAST_FILES)}"
        )


def nblast_path(nblast, config):
    _check_variant(nblast)
    return config.storage_root / NBLAST_FOLDER / f"{NBLAST_FILES[nblast]}.csv"


def nblast_dataset(nblast, config):
    """The archive matrix for one NBLAST variant, as a LocalDataset."""
    path = nblast_path(nblast, config)
    return LocalDataset(
        name=path.stem,
        ftype="matrix",
        origin=path,
        description=f"Mean forward/backward {nblast} NBLAST scores",
    )


def hemibrain_nblast(nblast, config):
    """Read an archived NBLAST matrix.

    Parameters
    ----------
    nblast : str
        One of "hemibrain-flywire", "flywire", "flywire-mirror".
    config : ArchiveConfig

    Returns
    -------
    pd.DataFrame
        The archived matrix, or an empty frame when nothing is archived yet.
    """
    dataset = nblast_dataset(nblast, config)
    if not dataset.exists:
        LOG.warning("No archived %s NBLAST at %s, starting empty",
                    nblast, dataset.origin)
        return pd.DataFrame(dtype=float)
    matrix = dataset.value
    LOG.info("Read %d x %d %s NBLAST", matrix.shape[0], matrix.shape[1], nblast)
    return matrix


def save_nblast(matrix, nblast, config):
    """Replace the archived matrix for ``nblast`` with ``matrix``."""
    dataset = nblast_dataset(nblast, config)
    path = dataset.replace(matrix)
    LOG.info("Saved %d x %d %s NBLAST to %s",
             matrix.shape[0], matrix.shape[1], nblast, path)
    return path
