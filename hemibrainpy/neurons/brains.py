"""Template brains: names, aliases, and neuron transforms between them.

FlyWire skeletons come out of skeletonisation in FAFB14 nanometres. The
archive keeps one copy per template brain, and optionally a mirrored copy
flipped to the other hemisphere. The registrations themselves come from
flybrains, driven through navis.xform_brain and navis.mirror_brain.
"""

from typing import Callable, Optional, Tuple

from hemibrainpy.utils import get_logger

LOG = get_logger("neurons.brains")

try:
    import navis
    HAS_NAVIS = True
except ImportError:
    HAS_NAVIS = False


FLYWIRE = "FlyWire"
"""Native FlyWire space; neurons stored here are not transformed."""

FLYWIRE_SOURCE = "FAFB14"
"""Template space of freshly skeletonised FlyWire neurons."""

MIRROR_TEMPLATE = "JFRC2"
"""Symmetric template in which neurons are mirrored."""

HEMIBRAIN = "JRCFIB2018F"

HEMIBRAIN_RAW_SCALE = 8 / 1000
"""Raw hemibrain voxels (8 nm) to microns."""

FLYWIRE_BRAINS = (
    "FlyWire", "JRCFIB2018Fraw", "JRCFIB2018F", "FAFB", "FAFB14",
    "JFRC2", "JFRC2013", "JRC2018F", "FCWB",
)
"""Brains in which archived FlyWire neurons can be read."""

UPDATE_BRAINS = (
    "FlyWire", "JRCFIB2018F", "FAFB", "JFRC2", "JFRC2013", "JRC2018F", "FCWB",
)
"""Brains in which FlyWire neurons are archived."""


def _require_navis():
    if not HAS_NAVIS:
        raise ImportError("navis is required. Install with: pip install navis flybrains")


def resolve_brain(brain: str) -> Tuple[str, Optional[float]]:
    """Map a requested brain onto the archive folder it is stored under.

    Returns
    -------
    (str, float or None)
        The storage brain and the scale factor to apply after reading.
        Raw hemibrain space is served from the JRCFIB2018F archive scaled
        by 8/1000; FAFB and FAFB14 are served from the native FlyWire one.
    """
    if brain not in FLYWIRE_BRAINS:
        raise ValueError(
            f"Unknown brain '{brain}'. Choose one of: {', '.join(FLYWIRE_BRAINS)}"
        )
    if brain == "JRCFIB2018Fraw":
        return HEMIBRAIN, HEMIBRAIN_RAW_SCALE
    if brain in ("FAFB", "FAFB14"):
        return FLYWIRE, None
    return brain, None


def check_update_brain(brain: str) -> str:
    if brain not in UPDATE_BRAINS:
        raise ValueError(
            f"Cannot archive neurons in '{brain}'. "
            f"Choose one of: {', '.join(UPDATE_BRAINS)}"
        )
    return brain


def default_xform() -> Callable:
    """navis.xform_brain with the flybrains registrations loaded."""
    _require_navis()
    import flybrains  # noqa: F401  registers template transforms with navis
    return navis.xform_brain


def default_mirror() -> Callable:
    _require_navis()
    import flybrains  # noqa: F401
    return navis.mirror_brain


def transform_neurons(
    neurons,
    brain: str,
    mirror: bool = False,
    xform: Optional[Callable] = None,
    mirror_fn: Optional[Callable] = None,
):
    """Bring freshly skeletonised FAFB14 neurons into an archive brain.

    Mirrored neurons are moved into JFRC2, flipped there, and moved on to
    the target brain (unless the target is native FlyWire space, where the
    JFRC2 copy is kept). Non-mirrored neurons are transformed directly, and
    left untouched when the target is FlyWire.

    Parameters
    ----------
    neurons : navis.NeuronList
        Neurons in FAFB14 space.
    brain : str
        Target archive brain (one of UPDATE_BRAINS).
    mirror : bool
        Whether to produce the mirrored variant.
    xform, mirror_fn : callable, optional
        Replacements for navis.xform_brain(x, source=, target=) and
        navis.mirror_brain(x, template=).
    """
    check_update_brain(brain)
    if mirror:
        xform = xform or default_xform()
        mirror_fn = mirror_fn or default_mirror()
        LOG.info("Mirroring %d neurons in %s", len(neurons), MIRROR_TEMPLATE)
        moved = xform(neurons, source=FLYWIRE_SOURCE, target=MIRROR_TEMPLATE)
        flipped = mirror_fn(moved, template=MIRROR_TEMPLATE)
        if brain != FLYWIRE:
            flipped = xform(flipped, source=MIRROR_TEMPLATE, target=brain)
        return flipped
    if brain != FLYWIRE:
        xform = xform or default_xform()
        LOG.info("Transforming %d skeletons %s -> %s", len(neurons), FLYWIRE_SOURCE, brain)
        return xform(neurons, source=FLYWIRE_SOURCE, target=brain)
    return neurons


def scale_neurons(neurons, scale: Optional[float]):
    """Scale neuron coordinates; a scale of None returns the input."""
    if scale is None:
        return neurons
    return neurons * scale
