"""Aggregate local features using Fisher Vectors with a pre-trained diagonal
GMM as the probabilistic model"""

import logging

from joblib import Parallel, delayed
import numpy as np

from .base import BaseAggregator
from .mixture import DiagonalGaussianMixture
from .normalization import l2_normalize, power_normalize


logger = logging.getLogger(__name__)


def _accumulate_batch(x, mixture):
    """Compute the unnormalized first and second order statistics of the
    vectors in x and return their sum.

    see "Fisher Kernels on Visual Vocabularies for Image Categorization" by
    Perronnin and Dance and "Improving the Fisher Kernel for Large-Scale Image
    Classification" by Perronnin et al.

    Parameters
    ----------
    x: array, shape (M, D)
       The local features to be accumulated
    mixture: DiagonalGaussianMixture
             The GMM that provides the posteriors, the means and the variances

    Return
    ------
    array, shape (K, 2, D) The summed statistics, [:, 0] are the first order
    and [:, 1] the second order ones
    """
    # responsibilities of every gaussian for every x, shape (M, K)
    q = np.exp(mixture.log_posterior(x))

    # the standardized residuals, shape (M, K, D)
    diff = (x[:, np.newaxis, :] - mixture._means[np.newaxis]) * \
        mixture._inverted_variances[np.newaxis]

    return np.stack([
        np.einsum("mk,mkd->kd", q, diff),
        np.einsum("mk,mkd->kd", q, diff**2 - 1)
    ], axis=1)


class FisherVectorEncoder(BaseAggregator):
    """Aggregate local features using Fisher Vector encoding with an already
    trained GMM.

    The encoding of N local features of dimensionality D is a vector of
    length 2*K*D, with K the number of gaussians, organized in K blocks. Each
    block holds the D first order statistics followed by the D second order
    statistics of the corresponding gaussian.

    Only the diagonal of the covariance matrices is ever used.

    Parameters
    ----------
    mixture : DiagonalGaussianMixture or sklearn.mixture.GaussianMixture
              The trained model, sklearn models are converted with
              DiagonalGaussianMixture.from_sklearn
    hellinger : bool
                Map the final vector to the Hellinger kernel by signed square
                rooting every value
    l2_normalization : bool
                       Scale the final vector to unit L2 norm. This happens
                       after the Hellinger mapping if both are used.
    dimension_ordering : {'th', 'tf'}
                         Changes how n-dimensional arrays are reshaped to form
                         simple local feature matrices. 'th' ordering means the
                         local feature dimension is the second dimension and
                         'tf' means it is the last dimension.
    inner_batch : int
                  Compute the statistics of 'inner_batch' vectors together.
                  It controls a trade off between speed and memory.
    n_jobs : int
            The threads to use for the accumulation
    """

    def __init__(self, mixture, hellinger=False, l2_normalization=False,
                 dimension_ordering="tf", inner_batch=64, n_jobs=1):
        if not isinstance(mixture, DiagonalGaussianMixture):
            mixture = DiagonalGaussianMixture.from_sklearn(mixture)
        if int(inner_batch) < 1:
            raise ValueError("inner_batch should be at least 1")

        self._mixture = mixture
        self._hellinger = bool(hellinger)
        self._l2_normalization = bool(l2_normalization)
        self._inner_batch = int(inner_batch)
        self._n_jobs = n_jobs

        super(FisherVectorEncoder, self).__init__(dimension_ordering)

        logger.debug(
            "Created %s with K=%d, D=%d, hellinger=%s, l2_normalization=%s",
            self.__class__.__name__, mixture.n_components,
            mixture.n_features, self._hellinger, self._l2_normalization
        )

    @classmethod
    def improved(cls, mixture, **kwargs):
        """Create the improved fisher vector encoder, namely the Hellinger
        mapping followed by L2 normalization."""
        return cls(mixture, hellinger=True, l2_normalization=True, **kwargs)

    @property
    def mixture(self):
        return self._mixture

    @property
    def hellinger(self):
        return self._hellinger

    @property
    def l2_normalization(self):
        return self._l2_normalization

    @property
    def inner_batch(self):
        return self._inner_batch

    @property
    def n_jobs(self):
        return self._n_jobs

    @property
    def output_dim(self):
        """The length of the encoded vectors, 2*K*D"""
        return 2 * self._mixture.n_components * self._mixture.n_features

    def split(self, fv):
        """Split an encoded vector into its first and second order parts.

        Return
        ------
        (first_order, second_order) each with shape (K, D)
        """
        fv = np.asarray(fv)
        if fv.shape != (self.output_dim,):
            raise ValueError(
                "Expected a vector of length %d but got shape %s"
                % (self.output_dim, fv.shape)
            )
        blocks = fv.reshape(
            self._mixture.n_components, 2, self._mixture.n_features
        )

        return blocks[:, 0].copy(), blocks[:, 1].copy()

    def __getstate__(self):
        """Return the data that should be pickled in order to save the fisher
        encoder."""
        return {
            "mixture": self._mixture,
            "hellinger": self._hellinger,
            "l2_normalization": self._l2_normalization,
            "dimension_ordering": self._dimension_ordering,
            "inner_batch": self._inner_batch,
            "n_jobs": self._n_jobs
        }

    def __setstate__(self, state):
        """Restore the encoder's state after unpickling.

        Parameters
        ----------
        state: dictionary
               The unpickled data that were returned by __getstate__
        """
        self.__init__(**state)

    def fit(self, X=None, y=None):
        """The GMM is trained beforehand so there is nothing to learn."""
        return self

    def _aggregate(self, x):
        """Compute the normalized but not post-processed fisher vector of a
        non empty (N, D) matrix of local features."""
        K = self._mixture.n_components
        D = self._mixture.n_features
        N = len(x)

        if x.shape[1] != D:
            raise ValueError(
                "The local features have dimensionality %d but the GMM "
                "expects %d" % (x.shape[1], D)
            )

        batches = range(0, N, self._inner_batch)
        if self._n_jobs == 1 or len(batches) == 1:
            partial = [
                _accumulate_batch(x[j:j+self._inner_batch], self._mixture)
                for j in batches
            ]
        else:
            partial = Parallel(n_jobs=self._n_jobs, backend="threading")(
                delayed(_accumulate_batch)(
                    x[j:j+self._inner_batch],
                    self._mixture
                )
                for j in batches
            )
        fv = np.zeros((K, 2, D))
        for p in partial:
            fv += p

        # the diagonal approximation of the fisher information matrix
        weights = self._mixture._weights.reshape(K, 1)
        fv[:, 0] *= 1.0 / (N * np.sqrt(weights))
        fv[:, 1] *= 1.0 / (N * np.sqrt(2 * weights))

        return fv.ravel()

    def _postprocess(self, fv):
        if self._hellinger:
            fv = power_normalize(fv)
        if self._l2_normalization:
            fv = l2_normalize(fv)

        return fv

    def encode(self, features):
        """Compute the fisher vector of a single set of local features.

        Parameters
        ----------
        features : array_like or list
                   The local features, either a (N, D) matrix, a list of
                   vectors or an n-dimensional array reshaped according to
                   dimension_ordering

        Return
        ------
        array, shape (2*K*D,) or None if there are no local features
        """
        x = self._local_features(features)
        if x is None:
            logger.debug("No local features to encode")
            return None

        logger.debug("Encoding %d local features", len(x))

        return self._postprocess(self._aggregate(x))

    def transform(self, X):
        """Compute the fisher vector of each set of local features in X.

        Parameters
        ----------
        X : array_like or list
            The local features to aggregate. They must be either nd arrays or
            a list of nd arrays. Each item is aggregated separately.

        Return
        ------
        array, shape (n_samples, 2*K*D) Samples without local features are
        encoded as zero vectors
        """
        # Get the local features and the number of local features per document
        X, lengths = self._reshape_local_features(X)
        if len(X) and X.shape[1] != self._mixture.n_features:
            raise ValueError(
                "The local features have dimensionality %d but the GMM "
                "expects %d" % (X.shape[1], self._mixture.n_features)
            )

        fv = np.zeros((len(lengths), self.output_dim))
        empty = []
        s, e = 0, 0
        for i, l in enumerate(lengths):
            s, e = e, e+l
            if l == 0:
                empty.append(i)
                continue
            fv[i] = self._aggregate(X[s:e])

        if empty:
            logger.warning(
                "Samples %s have no local features and are encoded as zero "
                "vectors", empty
            )

        return self._postprocess(fv)
