"""Explicit configuration for archive operations.

Every operation that touches the archive drive takes an ArchiveConfig
instead of reading global options: where the shared drive is mounted,
which brain and hemisphere variant to default to, where neuron requests
are recorded, and how many cores NBLAST may use.

A config can be kept in a YAML file:

    storage_root: /Volumes/GoogleDrive/Shared drives/hemibrain
    brain: JRCFIB2018F
    mirror: false
    request_tab: flywire
    n_cores: 8
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from hemibrainpy.bench.dataset import Dataset
from hemibrainpy.neurons.brains import FLYWIRE, resolve_brain
from hemibrainpy.utils import get_logger

LOG = get_logger("config")

REQUESTS_FOLDER = "flywire_requests"


@dataclass
class ArchiveConfig:
    """Where the archive lives and what operations default to.

    Parameters
    ----------
    storage_root : Path or str
        Root of the archive drive.
    brain : str
        Default template brain for reading and writing neurons.
    mirror : bool
        Default to the mirrored neuron variants.
    request_sheet : Path or str, optional
        Spreadsheet target for neuron requests. Defaults to
        <storage_root>/flywire_requests.
    request_tab : str
        Default tab of the request sheet.
    n_cores : int
        Cores handed to NBLAST.
    """

    storage_root: Any
    brain: str = FLYWIRE
    mirror: bool = False
    request_sheet: Optional[Any] = None
    request_tab: str = "flywire"
    n_cores: int = 1

    def __post_init__(self):
        self.storage_root = Path(self.storage_root)
        if self.request_sheet is None:
            self.request_sheet = self.storage_root / REQUESTS_FOLDER
        else:
            self.request_sheet = Path(self.request_sheet)
        resolve_brain(self.brain)
        if int(self.n_cores) < 1:
            raise ValueError(f"n_cores must be at least 1, got {self.n_cores}")
        self.n_cores = int(self.n_cores)

    def define(self):
        """Plain-dict form, as written to YAML."""
        return {
            "storage_root": str(self.storage_root),
            "brain": self.brain,
            "mirror": bool(self.mirror),
            "request_sheet": str(self.request_sheet),
            "request_tab": self.request_tab,
            "n_cores": self.n_cores,
        }

    @classmethod
    def from_dict(cls, data):
        if "storage_root" not in data:
            raise ValueError("Configuration needs a 'storage_root'")
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)


def load_config(path):
    """Read an ArchiveConfig from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    data = Dataset(name="config", ftype="yaml").load(path) or {}
    config = ArchiveConfig.from_dict(data)
    LOG.debug("Archive at %s, default brain %s", config.storage_root, config.brain)
    return config


def save_config(config, path):
    Dataset(name="config", ftype="yaml").save(config.define(), path)
    return Path(path)
