"""The on-disk archive of FlyWire (and hemibrain) neuron skeletons.

Layout under the storage root:

    flywire_neurons/<brain>/flywire_neurons_<brain>.parquet
    flywire_neurons/<brain>/flywire_neurons_<brain>.meta.csv
    flywire_neurons/<brain>/flywire_neurons_<brain>_mirrored.parquet
    ...
    hemibrain_neurons/<brain>/hemibrain_neurons_<brain>.parquet

Skeletons are stored with navis.write_parquet. The sidecar .meta.csv lists
every archived neuron with its FlyWire metadata, so the archive can say
which ids it holds without reading a single skeleton. A NeuronArchive reads
skeletons only when asked, caches them, and lets the caller evict them.
"""

from collections import OrderedDict
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import pandas as pd

from hemibrainpy.neurons.brains import resolve_brain, scale_neurons, HEMIBRAIN
from hemibrainpy.neurons.skeletons import as_neuronlist
from hemibrainpy.utils import get_logger

LOG = get_logger("neurons.archive")

try:
    import navis
    HAS_NAVIS = True
except ImportError:
    HAS_NAVIS = False

ARCHIVE_SUFFIX = ".parquet"
META_SUFFIX = ".meta.csv"


def _require_navis():
    if not HAS_NAVIS:
        raise ImportError("navis is required. Install with: pip install navis")


def _skeleton_id(identifier):
    """Root ids are stored as integers; anything else as given."""
    text = str(identifier)
    return int(text) if text.isdigit() else text


def read_skeletons(path, ids):
    """Read a subset of skeletons from a parquet archive."""
    _require_navis()
    return navis.read_parquet(str(path), subset=[_skeleton_id(i) for i in ids])


def write_skeletons(neurons, path):
    _require_navis()
    navis.write_parquet(neurons, str(path))


# ---------------------------------------------------------------------------
# Paths and listing
# ---------------------------------------------------------------------------

def neuron_archive_dir(config, brain, dataset="flywire"):
    return config.storage_root / f"{dataset}_neurons" / brain


def archive_file_name(brain, mirror=False, dataset="flywire"):
    flip = "_mirrored" if mirror else ""
    return f"{dataset}_neurons_{brain}{flip}{ARCHIVE_SUFFIX}"


def meta_path_for(path):
    path = Path(path)
    return path.with_name(path.name[: -len(ARCHIVE_SUFFIX)] + META_SUFFIX)


def list_archive_files(directory, mirror=False) -> List[Path]:
    """Archive files in ``directory``, newest name first.

    Only files whose name mentions "mirror" are returned when ``mirror``
    is True, and only files that do not otherwise.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []
    files = [p for p in directory.glob(f"*{ARCHIVE_SUFFIX}")
             if ("mirror" in p.name) == bool(mirror)
             and not p.name.startswith(".")]
    return sorted(files, key=lambda p: p.name, reverse=True)


# ---------------------------------------------------------------------------
# NeuronArchive: explicit lazy loader and cache
# ---------------------------------------------------------------------------

class NeuronArchive:
    """Neurons of one archive file, fetched on demand.

    Nothing is read at construction. ``ids`` and ``meta`` come from the
    sidecar table; skeletons are read by ``prefetch`` (one batched read for
    many ids) or ``get`` (one id), kept in a cache, and dropped by
    ``evict``.

    Parameters
    ----------
    path : Path or str
        The .parquet archive file.
    reader : callable, optional
        (path, ids) -> iterable of neurons. Defaults to read_skeletons.
    scale : float, optional
        Applied to every neuron as it is read.
    """

    def __init__(self, path, reader: Optional[Callable] = None, scale=None):
        self.path = Path(path)
        self.reader = reader or read_skeletons
        self.scale = scale
        self._cache = OrderedDict()
        self._meta = None

    def __repr__(self):
        return (f"NeuronArchive({self.path.name!r}, {len(self)} neurons, "
                f"{len(self._cache)} cached)")

    @property
    def meta(self) -> pd.DataFrame:
        """Sidecar metadata, indexed by id."""
        if self._meta is None:
            meta_path = meta_path_for(self.path)
            if not meta_path.exists():
                raise FileNotFoundError(
                    f"Archive metadata not found: {meta_path}. "
                    "Rewrite the archive with write_neuron_archive."
                )
            meta = pd.read_csv(meta_path, dtype=str, keep_default_na=False)
            self._meta = meta.set_index("id")
        return self._meta

    @property
    def ids(self) -> List[str]:
        return list(self.meta.index)

    @property
    def cached(self) -> List[str]:
        return list(self._cache)

    def __len__(self):
        return len(self.meta)

    def __contains__(self, identifier):
        return str(identifier) in self.meta.index

    def __iter__(self):
        return iter(self.ids)

    def prefetch(self, ids: Iterable):
        """Read every listed neuron that is not cached yet, in one batch.

        Raises
        ------
        KeyError
            If an id is not in the archive.
        """
        ids = [str(i) for i in ids]
        unknown = [i for i in ids if i not in self]
        if unknown:
            raise KeyError(f"Not in {self.path.name}: {unknown[:5]}")
        missing = list(OrderedDict.fromkeys(i for i in ids if i not in self._cache))
        if not missing:
            return self
        LOG.debug("Reading %d neurons from %s", len(missing), self.path.name)
        for neuron in self.reader(self.path, missing):
            self._cache[str(neuron.id)] = scale_neurons(neuron, self.scale)
        not_read = [i for i in missing if i not in self._cache]
        if not_read:
            raise KeyError(f"Listed but not stored in {self.path.name}: {not_read[:5]}")
        return self

    def get(self, identifier):
        identifier = str(identifier)
        if identifier not in self._cache:
            self.prefetch([identifier])
        return self._cache[identifier]

    __getitem__ = get

    def evict(self, ids: Optional[Iterable] = None):
        """Drop neurons from the cache; all of them when ``ids`` is None."""
        if ids is None:
            self._cache.clear()
        else:
            for identifier in ids:
                self._cache.pop(str(identifier), None)
        return self

    def subset(self, ids: Iterable):
        """NeuronList of the requested neurons, in the requested order."""
        ids = [str(i) for i in ids]
        self.prefetch(ids)
        return as_neuronlist([self._cache[i] for i in ids])

    def load_all(self):
        return self.subset(self.ids)


def _open_archive(directory, mirror, reader, scale):
    files = list_archive_files(directory, mirror=mirror)
    if not files:
        LOG.warning("Neuron archive (%s) not found at: %s", ARCHIVE_SUFFIX, directory)
        return None
    LOG.info("Opening %s", files[0])
    return NeuronArchive(files[0], reader=reader, scale=scale)


def flywire_neurons(config, brain=None, mirror=None, reader=None):
    """The archived FlyWire neurons for a brain.

    Parameters
    ----------
    config : ArchiveConfig
    brain : str, optional
        Any of FLYWIRE_BRAINS; defaults to config.brain.
    mirror : bool, optional
        Read the mirrored variant; defaults to config.mirror.
    reader : callable, optional
        See NeuronArchive.

    Returns
    -------
    NeuronArchive or None
        None (with a warning) when no archive file exists.
    """
    brain = config.brain if brain is None else brain
    mirror = config.mirror if mirror is None else mirror
    storage_brain, scale = resolve_brain(brain)
    directory = neuron_archive_dir(config, storage_brain)
    return _open_archive(directory, mirror, reader, scale)


def hemibrain_neurons(config, brain=HEMIBRAIN, reader=None):
    """The archived hemibrain neurons (the NBLAST targets) for a brain."""
    storage_brain, scale = resolve_brain(brain)
    directory = neuron_archive_dir(config, storage_brain, dataset="hemibrain")
    return _open_archive(directory, False, reader, scale)


def write_neuron_archive(neurons, meta, path, writer: Optional[Callable] = None):
    """Write skeletons and their sidecar table.

    Both files are written next to their targets first and then moved into
    place, skeletons before metadata.

    Parameters
    ----------
    neurons : navis.NeuronList
    meta : pd.DataFrame
        One row per neuron, indexed by id.
    path : Path
        Target .parquet file.
    writer : callable, optional
        (neurons, path) -> None. Defaults to write_skeletons.
    """
    path = Path(path)
    writer = writer or write_skeletons
    ids = [str(n.id) for n in neurons]
    meta = meta.copy()
    meta.index = meta.index.astype(str)
    missing = sorted(set(ids) - set(meta.index))
    if missing:
        raise ValueError(f"No metadata for neurons: {missing[:5]}")
    meta = meta.loc[ids]
    meta.index.name = "id"

    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(f".{path.name}")
    meta_target = meta_path_for(path)
    meta_staging = meta_target.with_name(f".{meta_target.name}")
    try:
        writer(neurons, staging)
        meta.reset_index().to_csv(meta_staging, index=False)
        staging.replace(path)
        meta_staging.replace(meta_target)
    finally:
        for leftover in (staging, meta_staging):
            if leftover.exists():
                leftover.unlink()
    LOG.info("Archived %d neurons to %s", len(ids), path)
    return path
