"""Dataset hierarchy and the @evaluate_datasets decorator.

Archive files are read once at the start of an update and replaced
wholesale at the end. A Dataset wraps one such file: it knows its format,
reads lazily on first access of .value, and writes through a format
specific savior.
"""

from pathlib import Path
from dataclasses import dataclass
from typing import Any, Callable

import pandas as pd

from hemibrainpy.utils import get_logger

LOG = get_logger("dataset")


# ---------------------------------------------------------------------------
# Loaders and saviors by file type
# ---------------------------------------------------------------------------

def read_matrix(path):
    """Read a labelled score matrix; labels are always strings."""
    matrix = pd.read_csv(path, index_col=0)
    matrix.index = matrix.index.astype(str)
    matrix.columns = matrix.columns.astype(str)
    matrix.index.name = None
    return matrix


def write_matrix(matrix, path):
    matrix.to_csv(path, index=True)


def _default_loaders():
    """File-type → loader function mapping."""
    import yaml

    def load_yaml(path):
        with open(path, "r") as f:
            return yaml.safe_load(f)

    return {
        "matrix": read_matrix,
        "csv": pd.read_csv,
        "yaml": load_yaml,
    }


def _default_saviors():
    """File-type → save function mapping."""
    import yaml

    def write_yaml(data, path):
        with open(path, "w") as f:
            yaml.safe_dump(data, f, sort_keys=False)

    return {
        "matrix": write_matrix,
        "csv": lambda df, p: df.to_csv(p, index=False),
        "yaml": write_yaml,
    }


# ---------------------------------------------------------------------------
# Base Dataset
# ---------------------------------------------------------------------------

@dataclass
class Dataset:
    """A named, typed, lazy-loading dataset.

    Parameters
    ----------
    name : str
        Human-readable name.
    ftype : str
        Format key: "matrix", "csv" or "yaml".
    loader : callable, optional
        Function path → data. If None, resolved from ftype defaults.
    savior : callable, optional
        Function (data, path) → None. If None, resolved from ftype defaults.
    description : str, optional
        What this dataset contains.
    """

    name: str
    ftype: str
    loader: Callable = None
    savior: Callable = None
    description: str = None

    def __post_init__(self):
        if self.loader is None:
            self.loader = _default_loaders().get(self.ftype)
        if self.savior is None:
            self.savior = _default_saviors().get(self.ftype)

    def define(self):
        """Serializable definition of this dataset."""
        return {
            "class": self.__class__.__qualname__,
            "name": self.name,
            "ftype": self.ftype,
            "description": self.description or "Not provided",
        }

    def load(self, path):
        """Load data from a path using this dataset's loader."""
        if self.loader is None:
            raise ValueError(f"No loader for dataset '{self.name}' (ftype={self.ftype})")
        LOG.info("Loading dataset '%s' from %s", self.name, path)
        self._value = self.loader(Path(path))
        self._path = Path(path)
        return self._value

    def save(self, data, path):
        """Save data to a path using this dataset's savior."""
        if self.savior is None:
            raise ValueError(f"No savior for dataset '{self.name}' (ftype={self.ftype})")
        LOG.info("Saving dataset '%s' to %s", self.name, path)
        return self.savior(data, Path(path))

    @property
    def value(self):
        """Lazy access to the dataset's data.

        On first access, loads from self._path if available.
        Subsequent accesses return the cached value.
        """
        try:
            return self._value
        except AttributeError:
            pass
        try:
            path = self._path
        except AttributeError:
            raise RuntimeError(
                f"Dataset '{self.name}' has no data and no path to load from. "
                "Call .load(path) first, or create a LocalDataset with an origin."
            )
        return self.load(path)

    def with_data(self, data):
        """Attach in-memory data to this dataset. Returns self for chaining."""
        self._value = data
        return self


# ---------------------------------------------------------------------------
# LocalDataset
# ---------------------------------------------------------------------------

@dataclass
class LocalDataset(Dataset):
    """A dataset residing at a known path on the archive drive.

    Parameters
    ----------
    origin : Path or str
        Where the data lives on disc.
    """

    origin: Any = None

    def __post_init__(self):
        if isinstance(self.origin, str):
            self.origin = Path(self.origin)
        if self.origin is not None:
            self._path = self.origin
        super().__post_init__()

    @property
    def exists(self):
        return self.origin is not None and self.origin.exists()

    def replace(self, data):
        """Write data over the origin in one step.

        The data is written next to the origin first and then moved into
        place, so a failing savior leaves the previous file intact.
        """
        if self.origin is None:
            raise ValueError(f"Dataset '{self.name}' has no origin to replace")
        self.origin.parent.mkdir(parents=True, exist_ok=True)
        staging = self.origin.with_name(f".{self.origin.name}.partial")
        try:
            self.save(data, staging)
            staging.replace(self.origin)
        finally:
            if staging.exists():
                staging.unlink()
        self._value = data
        return self.origin

    def define(self):
        definition = super().define()
        definition["origin"] = str(self.origin) if self.origin else None
        return definition


# ---------------------------------------------------------------------------
# @evaluate_datasets: unwrap Dataset arguments
# ---------------------------------------------------------------------------

def evaluate_datasets(method):
    """Decorator: unwrap Dataset arguments to their .value before calling.

    Any positional or keyword argument that is a Dataset is replaced by its
    .value. All other arguments pass through unchanged.
    """

    def _unwrap(arg):
        if isinstance(arg, Dataset):
            return arg.value
        return arg

    def wrapper(*args, **kwargs):
        unwrapped_args = tuple(_unwrap(a) for a in args)
        unwrapped_kwargs = {k: _unwrap(v) for k, v in kwargs.items()}
        return method(*unwrapped_args, **unwrapped_kwargs)

    wrapper.__name__ = method.__name__
    wrapper.__doc__ = method.__doc__
    wrapper.__wrapped__ = method
    return wrapper
