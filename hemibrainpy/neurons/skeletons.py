"""Skeletonise FlyWire segments.

Skeletonisation itself is fafbseg's: it fetches the segment mesh from the
FlyWire CloudVolume and skeletonises it with skeletor. This module only
adapts it to a "list of ids in, NeuronList out" callable that the update
and request workflows can take as a parameter.
"""

from typing import Callable, Sequence

from hemibrainpy.utils import get_logger

LOG = get_logger("neurons.skeletons")

try:
    import navis
    HAS_NAVIS = True
except ImportError:
    HAS_NAVIS = False


def as_neuronlist(neurons):
    """Wrap a single neuron or a sequence of neurons in a navis.NeuronList."""
    if not HAS_NAVIS:
        raise ImportError("navis is required. Install with: pip install navis")
    if isinstance(neurons, navis.NeuronList):
        return neurons
    if isinstance(neurons, navis.BaseNeuron):
        return navis.NeuronList([neurons])
    return navis.NeuronList(list(neurons))


def flywire_skeletonizer(**kwargs) -> Callable[[Sequence], "navis.NeuronList"]:
    """A skeletoniser backed by fafbseg.flywire.skeletonize_neuron.

    Parameters
    ----------
    **kwargs
        Passed through to skeletonize_neuron (e.g. ``dataset``,
        ``progress``).

    Returns
    -------
    callable
        ids -> navis.NeuronList, one TreeNeuron per FlyWire root id.
    """
    try:
        from fafbseg import flywire
    except ImportError:
        raise ImportError(
            "fafbseg is required to skeletonise FlyWire neurons. "
            "Install with: pip install fafbseg"
        )

    def skeletonize(ids):
        ids = [int(i) for i in ids]
        LOG.info("Skeletonising %d FlyWire neurons", len(ids))
        return as_neuronlist(flywire.skeletonize_neuron(ids, **kwargs))

    return skeletonize
