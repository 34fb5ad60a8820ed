"""neurons — the archive of FlyWire (and hemibrain) skeletons.

  - brains: template brain names, aliases, transforms and mirroring
  - archive: archive files and the on-demand NeuronArchive loader
  - basics: FlyWire metadata (stable anchor positions) per neuron
  - update: skeletonise, transform and add neurons to the archive
"""

from .brains import (
    FLYWIRE_BRAINS,
    UPDATE_BRAINS,
    resolve_brain,
    transform_neurons,
)
from .archive import (
    NeuronArchive,
    flywire_neurons,
    hemibrain_neurons,
    list_archive_files,
    write_neuron_archive,
)
from .basics import flywire_basics, parse_xyz
from .update import flywire_neurons_update
