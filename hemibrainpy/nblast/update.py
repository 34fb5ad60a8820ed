"""Re-NBLAST updated FlyWire neurons and fold the scores into the archive.

For the neurons being updated, the native and the mirrored skeletons (both
in JRCFIB2018F space) are turned into dotprops and NBLASTed in both
directions against a target set:

  hemibrain-flywire   all archived hemibrain neurons
  flywire-mirror      all archived FlyWire neurons

The two score tables then go through merge_nblast, which averages them,
collapses the mirrored ``_m`` variants into their native ids, clamps,
rounds and merges with the archived matrix. Archived columns of the
rescored neurons are dropped first; every other archived cell survives
unless a new score replaces it. The result replaces the archive.
"""

from typing import Callable, Optional, Sequence

from hemibrainpy.neurons.archive import flywire_neurons, hemibrain_neurons
from hemibrainpy.neurons.brains import HEMIBRAIN
from hemibrainpy.neurons.skeletons import as_neuronlist
from hemibrainpy.nblast.archive import NBLAST_FILES, hemibrain_nblast, save_nblast
from hemibrainpy.nblast.merge import MIRROR_SUFFIX, merge_nblast, strip_mirror_suffix
from hemibrainpy.utils import get_logger

LOG = get_logger("nblast.update")

try:
    import navis
    HAS_NAVIS = True
except ImportError:
    HAS_NAVIS = False


def _require_navis():
    if not HAS_NAVIS:
        raise ImportError("navis is required for NBLAST. Install with: pip install navis")


# ---------------------------------------------------------------------------
# Default collaborators
# ---------------------------------------------------------------------------

def navis_scorer(n_cores=1, **kwargs) -> Callable:
    """Normalised, forward navis NBLAST: (query, target) -> DataFrame."""
    _require_navis()

    def score(query, target):
        return navis.nblast(query, target, normalized=True, scores="forward",
                            n_cores=n_cores, progress=False, **kwargs)

    return score


def navis_dotprops(**kwargs) -> Callable:
    """NeuronList -> dotprops NeuronList via navis.make_dotprops."""
    _require_navis()

    def make(neurons):
        return navis.make_dotprops(neurons, **kwargs)

    return make


def archive_neuron_loader(config, brain=HEMIBRAIN) -> Callable:
    """(ids, mirror) -> NeuronList, reading the FlyWire neuron archive."""

    def load(ids, mirror=False):
        archive = flywire_neurons(config, brain=brain, mirror=mirror)
        if archive is None:
            raise FileNotFoundError(
                f"No {'mirrored ' if mirror else ''}FlyWire archive in {brain}"
            )
        present = [i for i in ids if i in archive]
        if len(present) < len(ids):
            LOG.warning("%d of %d neurons missing from %s",
                        len(ids) - len(present), len(ids), archive.path.name)
        return archive.subset(present)

    return load


def archive_target_loader(config, brain=HEMIBRAIN) -> Callable:
    """NBLAST variant -> NeuronList of every target neuron."""

    def load(nblast):
        if nblast == "hemibrain-flywire":
            LOG.info("Loading hemibrain neurons ...")
            archive = hemibrain_neurons(config, brain=brain)
        else:
            LOG.info("Loading flywire neurons ...")
            archive = flywire_neurons(config, brain=brain, mirror=False)
        if archive is None:
            raise FileNotFoundError(f"No target neurons archived for {nblast} NBLAST")
        return archive.load_all()

    return load


def with_suffix(neurons, suffix):
    """Copies of ``neurons`` whose ids carry ``suffix``."""
    renamed = []
    for neuron in neurons:
        neuron = neuron.copy()
        neuron.id = f"{neuron.id}{suffix}"
        renamed.append(neuron)
    return as_neuronlist(renamed)


# ---------------------------------------------------------------------------
# The update
# ---------------------------------------------------------------------------

def flywire_nblast_update(
    ids: Optional[Sequence] = None,
    nblast: str = "hemibrain-flywire",
    config=None,
    scorer: Optional[Callable] = None,
    dotprops: Optional[Callable] = None,
    neuron_loader: Optional[Callable] = None,
    target_loader: Optional[Callable] = None,
    func="max",
):
    """Recompute NBLAST scores for FlyWire neurons and update the archive.

    Parameters
    ----------
    ids : sequence, optional
        FlyWire ids to update. None means every neuron in the JRCFIB2018F
        archive that has no row in the archived matrix yet.
    nblast : str
        "hemibrain-flywire" or "flywire-mirror". The pure FlyWire
        self-comparison ("flywire") is not available.
    config : ArchiveConfig
    scorer : callable, optional
        (query, target) -> DataFrame of query x target scores.
    dotprops : callable, optional
        NeuronList -> dotprops NeuronList.
    neuron_loader : callable, optional
        (ids, mirror) -> NeuronList of query skeletons.
    target_loader : callable, optional
        nblast -> NeuronList of target skeletons.
    func : str or callable
        Reduction collapsing native and mirrored scores.

    Returns
    -------
    pd.DataFrame
        The merged matrix, as saved.
    """
    if config is None:
        raise ValueError("An ArchiveConfig is required")
    if nblast not in NBLAST_FILES:
        raise ValueError(
            f"Unknown NBLAST '{nblast}'. Choose one of: {', '.join(NBLAST_FILES)}"
        )
    if nblast == "flywire":
        raise NotImplementedError(
            "The FlyWire self-comparison NBLAST has no defined update order "
            "yet; use 'flywire-mirror' or 'hemibrain-flywire'."
        )

    scorer = scorer or navis_scorer(n_cores=config.n_cores)
    dotprops = dotprops or navis_dotprops()
    neuron_loader = neuron_loader or archive_neuron_loader(config)
    target_loader = target_loader or archive_target_loader(config)

    archive = hemibrain_nblast(nblast, config)
    if ids is None:
        available = flywire_neurons(config, brain=HEMIBRAIN, mirror=False)
        ids = [] if available is None else [i for i in available.ids
                                            if i not in archive.index]
    ids = [str(i) for i in ids]
    if not ids:
        raise ValueError(f"No FlyWire neurons to update in the {nblast} NBLAST")

    LOG.info("Loading %d flywire neurons ...", len(ids))
    native = dotprops(neuron_loader(ids, mirror=False))
    mirrored = with_suffix(dotprops(neuron_loader(ids, mirror=True)), MIRROR_SUFFIX)
    query = as_neuronlist(list(native) + list(mirrored))
    target = dotprops(target_loader(nblast))

    LOG.info("NBLASTing %d queries against %d targets (%s)",
             len(query), len(target), nblast)
    forward = scorer(query, target)
    backward = scorer(target, query)

    # Columns of rescored neurons go; rows are overwritten cell by cell.
    rescored = set(strip_mirror_suffix(forward.index)) & set(ids)
    archive = archive.drop(columns=[c for c in archive.columns if c in rescored])
    if len(rescored) < len(set(ids)):
        LOG.warning("%d of %d neurons were not rescored; their archived scores are kept",
                    len(set(ids)) - len(rescored), len(set(ids)))

    merged = merge_nblast(forward, backward, archive=archive, func=func)
    save_nblast(merged, nblast, config)
    return merged
