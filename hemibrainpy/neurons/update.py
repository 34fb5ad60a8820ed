"""Add newly traced FlyWire neurons to the archive.

skeletonise -> FlyWire basics -> transform / mirror -> union with the
archived neurons -> write the archive file back.
"""

from typing import Callable, Optional, Sequence

import pandas as pd

from hemibrainpy.neurons.archive import (
    archive_file_name,
    flywire_neurons,
    neuron_archive_dir,
    write_neuron_archive,
)
from hemibrainpy.neurons.basics import flywire_basics
from hemibrainpy.neurons.brains import check_update_brain, resolve_brain, transform_neurons
from hemibrainpy.neurons.skeletons import as_neuronlist, flywire_skeletonizer
from hemibrainpy.utils import get_logger

LOG = get_logger("neurons.update")


def union_neurons(new, new_meta, existing=None):
    """New neurons followed by archived neurons not superseded by them.

    Parameters
    ----------
    new : navis.NeuronList
    new_meta : pd.DataFrame
        Metadata of ``new``, indexed by id.
    existing : NeuronArchive, optional

    Returns
    -------
    (navis.NeuronList, pd.DataFrame)
    """
    new_ids = {str(n.id) for n in new}
    if existing is None:
        return as_neuronlist(new), new_meta
    kept = [i for i in existing.ids if i not in new_ids]
    LOG.info("Keeping %d archived neurons, replacing %d",
             len(kept), len(existing) - len(kept))
    old = list(existing.subset(kept)) if kept else []
    neurons = as_neuronlist(list(new) + old)
    meta = pd.concat([new_meta, existing.meta.loc[kept]])
    meta = meta.reindex(columns=new_meta.columns.union(existing.meta.columns, sort=False))
    return neurons, meta


def flywire_neurons_update(
    ids: Sequence,
    config,
    brain: Optional[str] = None,
    mirror: Optional[bool] = None,
    skeletonizer: Optional[Callable] = None,
    xform: Optional[Callable] = None,
    mirror_fn: Optional[Callable] = None,
    reader: Optional[Callable] = None,
    writer: Optional[Callable] = None,
):
    """Skeletonise FlyWire neurons and add them to the archive for a brain.

    Parameters
    ----------
    ids : sequence
        FlyWire root ids to (re)skeletonise.
    config : ArchiveConfig
    brain : str, optional
        Archive brain, one of UPDATE_BRAINS; defaults to config.brain.
        FAFB is archived under FlyWire.
    mirror : bool, optional
        Update the mirrored archive; defaults to config.mirror.
    skeletonizer : callable, optional
        ids -> NeuronList in FAFB14 space. Defaults to fafbseg.
    xform, mirror_fn : callable, optional
        See transform_neurons.
    reader, writer : callable, optional
        Archive I/O, see NeuronArchive and write_neuron_archive.

    Returns
    -------
    Path
        The archive file written.
    """
    # FAFB is stored as native FlyWire, where flywire_neurons reads it back
    brain, _ = resolve_brain(check_update_brain(config.brain if brain is None else brain))
    mirror = config.mirror if mirror is None else mirror
    ids = [str(i) for i in ids]
    if not ids:
        raise ValueError("No FlyWire ids given")

    skeletonizer = skeletonizer or flywire_skeletonizer()
    LOG.info("Skeletonising %d selected neurons ...", len(ids))
    neurons = as_neuronlist(skeletonizer(ids))
    meta = flywire_basics(neurons)

    existing = flywire_neurons(config, brain=brain, mirror=mirror, reader=reader)
    transformed = transform_neurons(neurons, brain, mirror=mirror,
                                    xform=xform, mirror_fn=mirror_fn)

    LOG.info("Making neuron archive ...")
    combined, combined_meta = union_neurons(transformed, meta, existing)
    path = neuron_archive_dir(config, brain) / archive_file_name(brain, mirror)
    return write_neuron_archive(combined, combined_meta, path, writer=writer)
