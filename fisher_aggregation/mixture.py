"""A read-only Gaussian mixture with diagonal covariances that provides the
posterior responsibilities needed for the fisher vector encoding"""

import logging

import numpy as np


logger = logging.getLogger(__name__)


class DiagonalGaussianMixture(object):
    """A trained mixture of gaussians with diagonal covariance matrices.

    The mixture is validated once at construction and it is never modified
    afterwards, so it can be shared among many encoders and threads.

    Parameters
    ----------
    weights : array_like, shape (K,)
              The mixing weights, they must all be positive
    means : array_like, shape (K, D)
            The mean of each gaussian
    variances : array_like, shape (K, D) or (K,) or (K, D, D)
                The variance of each dimension of each gaussian. Spherical
                variances are repeated for every dimension and from full
                covariance matrices only the diagonal is used.
    """

    def __init__(self, weights, means, variances):
        weights = np.array(weights, dtype=np.float64)
        means = np.array(means, dtype=np.float64)
        variances = np.array(variances, dtype=np.float64)

        if weights.ndim != 1 or weights.size == 0:
            raise ValueError("weights must be a non empty vector of shape (K,)")
        K = weights.shape[0]
        if means.ndim != 2 or means.shape[0] != K or means.shape[1] == 0:
            raise ValueError(
                "means must have shape (K, D) = (%d, D) with D >= 1 but has "
                "shape %s" % (K, means.shape)
            )
        D = means.shape[1]

        if variances.ndim == 1:
            variances = np.repeat(variances.reshape(-1, 1), D, axis=1)
        elif variances.ndim == 3:
            if variances.shape[1] != variances.shape[2]:
                raise ValueError("full covariances must be square matrices")
            variances = np.diagonal(variances, axis1=1, axis2=2).copy()
        if variances.shape != (K, D):
            raise ValueError(
                "variances must have shape (K, D) = (%d, %d) but has shape %s"
                % (K, D, variances.shape)
            )

        for name, value in [("weights", weights), ("means", means),
                            ("variances", variances)]:
            if not np.all(np.isfinite(value)):
                raise ValueError("%s contain non finite values" % name)
        if np.any(weights <= 0):
            raise ValueError(
                "All weights must be positive, got %s" % (weights,)
            )
        if np.any(variances <= 0):
            k, j = np.argwhere(variances <= 0)[0]
            raise ValueError(
                "All variances must be positive, got variance %g for "
                "component %d and dimension %d" % (variances[k, j], k, j)
            )

        self._weights = weights
        self._means = means
        self._variances = variances
        self._precompute()

        logger.debug(
            "Created a diagonal gaussian mixture with %d components and "
            "%d dimensions", K, D
        )

    def _precompute(self):
        """Compute the quantities that are reused for every posterior."""
        self._inverted_variances = 1. / self._variances
        self._log_norm = (
            np.log(self._weights) -
            0.5 * self._means.shape[1] * np.log(2 * np.pi) -
            0.5 * np.log(self._variances).sum(axis=1)
        )

    @classmethod
    def from_sklearn(cls, gmm):
        """Build a mixture from a fitted sklearn GaussianMixture.

        Every covariance type is accepted but only the diagonal of the
        covariance matrices is kept.
        """
        if not hasattr(gmm, "weights_"):
            raise RuntimeError(
                "GMM model not fitted. Have you called fit(data) first?"
            )

        covariance_type = getattr(gmm, "covariance_type", "diag")
        covariances = np.asarray(gmm.covariances_)
        if covariance_type == "tied":
            covariances = np.tile(
                np.diag(covariances),
                (len(gmm.weights_), 1)
            )

        return cls(gmm.weights_, gmm.means_, covariances)

    def __getstate__(self):
        """Return only the parameters of the mixture, everything else is
        recomputed when unpickling."""
        return {
            "weights": self._weights,
            "means": self._means,
            "variances": self._variances
        }

    def __setstate__(self, state):
        self.__init__(state["weights"], state["means"], state["variances"])

    def __repr__(self):
        return "%s(n_components=%d, n_features=%d)" % (
            self.__class__.__name__, self.n_components, self.n_features
        )

    @property
    def n_components(self):
        """The number of gaussians K"""
        return self._weights.shape[0]

    @property
    def n_features(self):
        """The dimensionality D of the modelled data"""
        return self._means.shape[1]

    @property
    def weights(self):
        return self._weights.copy()

    @property
    def means(self):
        return self._means.copy()

    @property
    def variances(self):
        return self._variances.copy()

    def weight(self, k):
        return float(self._weights[k])

    def mean(self, k):
        return self._means[k].copy()

    def variance(self, k, j):
        return float(self._variances[k, j])

    def log_posterior(self, X):
        """Compute the log of the posterior probability that each vector in X
        was generated by each gaussian.

        Parameters
        ----------
        X : array_like, shape (N, D) or (D,)
            The vectors to compute the posteriors for

        Return
        ------
        array, shape (N, K) or (K,)
        """
        X = np.asarray(X, dtype=np.float64)
        single = X.ndim == 1
        X = np.atleast_2d(X)
        if X.ndim != 2 or X.shape[1] != self.n_features:
            raise ValueError(
                "Expected vectors of dimensionality %d but got shape %s"
                % (self.n_features, X.shape)
            )

        # log(w_k N(x | mu_k, sigma_k)) for every pair of x and k
        diff = X[:, np.newaxis, :] - self._means[np.newaxis]
        q = -0.5 * (diff * diff * self._inverted_variances).sum(axis=-1)
        q += self._log_norm

        # normalize with the log-sum-exp trick
        q_max = q.max(axis=1, keepdims=True)
        q -= q_max + np.log(np.exp(q - q_max).sum(axis=1, keepdims=True))

        return q[0] if single else q

    def posterior(self, X):
        """Return the responsibilities exp(log_posterior(X)).

        Very unlikely components underflow to exactly 0.
        """
        return np.exp(self.log_posterior(X))
