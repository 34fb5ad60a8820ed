"""Fold freshly computed NBLAST scores into an archived score matrix.

NBLAST is directional: scoring A against B does not give the transpose of
scoring B against A. Archived matrices hold the mean of both directions,
with one row and one column per neuron even when a native and a mirrored
(``_m``) variant of the neuron were scored. The steps:

  1. average forward scores with the transposed backward scores,
  2. strip the mirror suffix from row and column labels,
  3. collapse rows (then columns) sharing a label with a reduction,
  4. clamp scores below -0.5 to -0.5,
  5. round to 3 decimals,
  6. merge into the archive, new values winning over archived ones.

All functions are pure: DataFrame in, new DataFrame out.
"""

import re
import warnings

import numpy as np
import pandas as pd

from hemibrainpy.bench.dataset import evaluate_datasets
from hemibrainpy.errors import IdentifierCollisionWarning, ShapeMismatchError
from hemibrainpy.utils import get_logger

LOG = get_logger("nblast.merge")

MIRROR_SUFFIX = "_m"
SCORE_FLOOR = -0.5
SCORE_DIGITS = 3


def as_score_matrix(matrix, name="matrix"):
    """Copy of ``matrix`` as a float DataFrame with string labels.

    Raises
    ------
    ShapeMismatchError
        If the input cannot be read as a rectangular numeric table.
    """
    if matrix is None:
        return pd.DataFrame(dtype=float)
    if not isinstance(matrix, pd.DataFrame):
        try:
            values = np.asarray(matrix)
        except ValueError as err:
            raise ShapeMismatchError(f"{name} is not a rectangular matrix: {err}") from err
        if values.ndim != 2:
            raise ShapeMismatchError(
                f"{name} is not a rectangular matrix (ndim={values.ndim})"
            )
        matrix = pd.DataFrame(values)

    non_numeric = [c for c in matrix.columns
                   if not pd.api.types.is_numeric_dtype(matrix[c])
                   and not matrix[c].isna().all()]
    if non_numeric:
        raise ShapeMismatchError(
            f"{name} has non-numeric columns: {list(map(str, non_numeric[:5]))}"
        )

    matrix = matrix.astype(float)
    matrix.index = pd.Index([str(i) for i in matrix.index])
    matrix.columns = pd.Index([str(c) for c in matrix.columns])
    return matrix


def _check_unique(matrix, name):
    for axis, labels in (("row", matrix.index), ("column", matrix.columns)):
        if labels.has_duplicates:
            dupes = labels[labels.duplicated()].unique().tolist()
            raise ShapeMismatchError(f"{name} has duplicated {axis} labels: {dupes[:5]}")


@evaluate_datasets
def average_directional_scores(forward, backward):
    """Mean of forward scores and transposed backward scores.

    ``combined[i, j] = (forward[i, j] + backward[j, i]) / 2``

    Parameters
    ----------
    forward : pd.DataFrame
        Queries as rows, targets as columns.
    backward : pd.DataFrame
        Targets as rows, queries as columns.

    Returns
    -------
    pd.DataFrame
        Laid out like ``forward``.

    Raises
    ------
    ShapeMismatchError
        If the row labels of one input are not the column labels of the other.
    """
    forward = as_score_matrix(forward, "forward scores")
    backward = as_score_matrix(backward, "backward scores")
    _check_unique(forward, "forward scores")
    _check_unique(backward, "backward scores")

    if (set(forward.index) != set(backward.columns)
            or set(forward.columns) != set(backward.index)):
        raise ShapeMismatchError(
            f"forward scores ({forward.shape[0]} x {forward.shape[1]}) and backward "
            f"scores ({backward.shape[0]} x {backward.shape[1]}) are not transposes "
            "of each other"
        )

    flipped = backward.T.reindex(index=forward.index, columns=forward.columns)
    return (forward + flipped) / 2


def strip_mirror_suffix(labels, suffix=MIRROR_SUFFIX):
    """Remove a trailing mirror suffix from every label."""
    if not suffix:
        return pd.Index([str(label) for label in labels])
    pattern = re.compile(f"{re.escape(suffix)}$")
    return pd.Index([pattern.sub("", str(label)) for label in labels])


def _warn_on_collisions(labels, axis):
    sizes = pd.Series(labels).value_counts()
    crowded = sizes[sizes > 2]
    if crowded.empty:
        return
    message = (f"{len(crowded)} {axis} label(s) collapse more than two variants, "
               f"e.g. {crowded.index[0]!r} x{crowded.iloc[0]}")
    LOG.warning(message)
    warnings.warn(message, IdentifierCollisionWarning, stacklevel=3)


@evaluate_datasets
def collapse_matrix_by_names(matrix, func="max"):
    """Collapse rows, then columns, that share a label.

    Parameters
    ----------
    matrix : pd.DataFrame
        Score matrix, possibly with repeated labels.
    func : str or callable
        Reduction applied within each group of equally labelled rows
        (columns), as accepted by ``DataFrameGroupBy.agg``. Missing values
        are skipped by the named reductions.

    Returns
    -------
    pd.DataFrame
        One row and one column per label, in order of first appearance.
        A matrix without repeated labels comes back unchanged.
    """
    matrix = as_score_matrix(matrix)
    _warn_on_collisions(matrix.index, "row")
    _warn_on_collisions(matrix.columns, "column")

    if matrix.index.has_duplicates:
        matrix = matrix.groupby(level=0, sort=False).agg(func)
    if matrix.columns.has_duplicates:
        matrix = matrix.T.groupby(level=0, sort=False).agg(func).T
    return matrix.astype(float)


def clamp_scores(matrix, lower=SCORE_FLOOR):
    """Raise every score below ``lower`` to ``lower``. Missing stays missing."""
    return matrix.clip(lower=lower)


def round_scores(matrix, digits=SCORE_DIGITS):
    return matrix.round(digits)


def symmetrize(matrix):
    """Mean of a square score matrix and its transpose over shared labels."""
    matrix = as_score_matrix(matrix)
    labels = matrix.index.intersection(matrix.columns, sort=False)
    square = matrix.reindex(index=labels, columns=labels)
    return (square + square.T) / 2


def _label_union(first, second):
    seen = set(first)
    return pd.Index(list(first) + [label for label in second if label not in seen])


@evaluate_datasets
def merge_into_archive(new, archive=None):
    """Merge new scores into an archived matrix.

    Rows and columns of the result are the union of both inputs' labels,
    new labels first. Each cell takes the new value where the new matrix
    has one, the archived value otherwise, and stays missing when neither
    has it.

    Raises
    ------
    ShapeMismatchError
        If either matrix has duplicated row or column labels.
    """
    new = as_score_matrix(new, "new scores")
    archive = as_score_matrix(archive, "archive")
    _check_unique(new, "new scores")
    _check_unique(archive, "archive")

    rows = _label_union(new.index, archive.index)
    columns = _label_union(new.columns, archive.columns)

    merged = new.reindex(index=rows, columns=columns)
    previous = archive.reindex(index=rows, columns=columns)
    merged = merged.where(merged.notna(), previous)
    LOG.debug("Merged %d x %d scores into %d x %d archive -> %d x %d",
              new.shape[0], new.shape[1], archive.shape[0], archive.shape[1],
              merged.shape[0], merged.shape[1])
    return merged


@evaluate_datasets
def merge_nblast(forward, backward, archive=None, func="max",
                 suffix=MIRROR_SUFFIX, lower=SCORE_FLOOR, digits=SCORE_DIGITS):
    """Turn a forward/backward NBLAST pair into an updated archive matrix.

    Parameters
    ----------
    forward : pd.DataFrame
        Query x target scores.
    backward : pd.DataFrame
        Target x query scores.
    archive : pd.DataFrame or Dataset, optional
        The archived matrix to fold the new scores into.
    func : str or callable
        Reduction used to collapse native and mirrored variants.
    suffix : str
        Label suffix marking mirrored variants.
    lower : float
        Floor for scores.
    digits : int
        Decimals kept.

    Returns
    -------
    pd.DataFrame
        The full matrix to persist in place of the archive.
    """
    combined = average_directional_scores.__wrapped__(forward, backward)
    combined.index = strip_mirror_suffix(combined.index, suffix)
    combined.columns = strip_mirror_suffix(combined.columns, suffix)
    combined = collapse_matrix_by_names.__wrapped__(combined, func=func)
    combined = clamp_scores(combined, lower=lower)
    combined = round_scores(combined, digits=digits)
    LOG.info("Computed %d x %d NBLAST scores", *combined.shape)
    return merge_into_archive.__wrapped__(combined, archive)
