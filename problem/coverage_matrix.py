# problem/coverage_matrix.py

import math
from collections import namedtuple

import numpy as np

from .errors import InvalidInputError

CoverageMatrix = namedtuple("CoverageMatrix", ["incidence", "threshold"])
"""
incidence: numpy bool array of shape (n_candidates, n_elements),
   incidence[i, j] is True iff candidate i serves universe element j
threshold: the service range the matrix was built with
"""


class CoverageMatrixBuilder:
    """
    Thresholds a distance (or generic cost) matrix into a coverage relation.
    Rows are candidate hub sites, columns are demand points. The matrix does not
    have to be square or symmetric.

    Example usage:
      builder = CoverageMatrixBuilder(threshold=5.0)
      matrix = builder.build(distances)
    """

    def __init__(self, threshold):
        self.threshold = _check_threshold(threshold)

    def build(self, distances, n_candidates=None, n_elements=None):
        """
        distances: 2-D array-like of non-negative numbers (+inf = unreachable)
        n_candidates, n_elements: optional declared shape, checked against the data
        Returns a CoverageMatrix with incidence[i, j] = distances[i][j] <= threshold.
        """
        D = _as_distance_array(distances)
        rows, cols = D.shape
        if n_candidates is not None and n_candidates != rows:
            raise InvalidInputError(
                f"distance matrix has {rows} rows but {n_candidates} candidates were declared")
        if n_elements is not None and n_elements != cols:
            raise InvalidInputError(
                f"distance matrix has {cols} columns but {n_elements} universe elements were declared")
        if np.isnan(D).any():
            raise InvalidInputError("distance matrix contains NaN")
        if (D < 0).any():
            i, j = np.argwhere(D < 0)[0]
            raise InvalidInputError(f"negative distance {D[i, j]} at ({i}, {j})")

        # closed threshold: a point exactly at range r is served;
        # an infinite distance is never served, even with r = inf
        incidence = np.isfinite(D) & (D <= self.threshold)
        return CoverageMatrix(incidence=incidence, threshold=self.threshold)


def build_coverage_matrix(distances, threshold, n_candidates=None, n_elements=None):
    return CoverageMatrixBuilder(threshold).build(distances, n_candidates, n_elements)


def _check_threshold(threshold):
    if isinstance(threshold, bool):
        raise InvalidInputError("threshold must be a number")
    try:
        r = float(threshold)
    except (TypeError, ValueError):
        raise InvalidInputError(f"threshold must be a number, got {threshold!r}") from None
    if math.isnan(r) or r < 0:
        raise InvalidInputError(f"threshold must be non-negative, got {threshold!r}")
    return r


def _as_distance_array(distances):
    try:
        D = np.asarray(distances, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"distance matrix is not a numeric rectangular array: {e}") from None
    if D.ndim != 2:
        # an empty list gives shape (0,), read it as zero candidates
        if D.size == 0:
            return D.reshape(0, 0)
        raise InvalidInputError(f"distance matrix must be 2-D, got shape {D.shape}")
    return D
