"""hemibrainpy — FlyWire and hemibrain neuron archive maintenance.

Keeps a shared drive of FlyWire skeletons (in several template brains,
native and mirrored) and of NBLAST matrices between FlyWire and hemibrain
neurons up to date.

Subpackages:
    bench     Persisted datasets and lazy loading
    neurons   Template brains, the neuron archive, neuron updates
    nblast    Merging NBLAST scores into archived matrices
    request   Requesting FlyWire neurons for the archive
    viz       Colour palettes
"""

__version__ = "0.1.0"

from hemibrainpy.config import ArchiveConfig, load_config, save_config
