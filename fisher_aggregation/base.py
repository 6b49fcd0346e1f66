import numpy as np
from sklearn.base import BaseEstimator, TransformerMixin


class BaseAggregator(BaseEstimator, TransformerMixin):
    """Implement any functions that can be shared among all feature
    aggregation methods."""

    def __init__(self, dimension_ordering="tf"):
        if dimension_ordering not in ("tf", "th"):
            raise ValueError(
                "dimension_ordering should be 'tf' or 'th' not %r"
                % (dimension_ordering,)
            )
        self._dimension_ordering = dimension_ordering

    @property
    def dimension_ordering(self):
        return self._dimension_ordering

    def _local_features(self, x):
        """Return a single set of local features as a dense float matrix.

        x can be a 2d array, a list of vectors or an n-dimensional array
        (e.g. a convolutional feature map). Return None if there are no
        local features at all.
        """
        if x is None:
            return None

        if isinstance(x, (list, tuple)):
            if len(x) == 0:
                return None
            lengths = set(np.size(xi) for xi in x)
            if len(lengths) != 1:
                raise ValueError(
                    "All local features should have the same dimensionality "
                    "but got %s" % sorted(lengths)
                )
            x = np.vstack([np.asarray(xi, dtype=np.float64).ravel()
                           for xi in x])
        else:
            x = np.asarray(x, dtype=np.float64)
            if x.size == 0:
                return None
            if x.ndim == 1:
                x = x.reshape(1, -1)
            elif self._dimension_ordering == "th":
                x = x.reshape(x.shape[0], -1).T
            else:
                x = x.reshape(-1, x.shape[-1])

        return x

    def _reshape_local_features(self, X):
        """Reshape a n-dimensional array into a 2d array of local features.

        Account for the case that X is a list because not all samples have
        the same number of local features. Samples without any local feature
        get a length of 0.
        """
        if X is None or len(X) == 0:
            raise ValueError("X cannot be empty")

        arrays = [self._local_features(x) for x in X]
        lengths = [0 if x is None else len(x) for x in arrays]
        arrays = [x for x in arrays if x is not None]
        if len(arrays) == 0:
            return np.zeros((0, 0)), lengths

        dims = set(x.shape[1] for x in arrays)
        if len(dims) != 1:
            raise ValueError(
                "All samples should have the same local feature "
                "dimensionality but got %s" % sorted(dims)
            )

        return np.vstack(arrays), lengths
