"""Exceptions and warnings raised while maintaining NBLAST matrices."""


class ShapeMismatchError(ValueError):
    """Score matrices that cannot be combined.

    Raised when forward and backward NBLAST scores are not transposes of
    each other, when an input is not a rectangular numeric table, or when
    an archive matrix has a malformed (duplicated) index.
    """


class IdentifierCollisionWarning(UserWarning):
    """More than two variants of one neuron collapsed into a single label."""
