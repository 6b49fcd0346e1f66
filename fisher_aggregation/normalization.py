"""Post-processing steps of the improved fisher vector encoding"""

import logging

import numpy as np


logger = logging.getLogger(__name__)


def power_normalize(fv):
    """Map the vectors to the Hellinger kernel space by taking the signed
    square root of each element.

    Parameters
    ----------
    fv : array_like
         A vector or a matrix with one vector per row

    Return
    ------
    A new array, fv is left untouched
    """
    fv = np.asarray(fv, dtype=np.float64)
    return np.sign(fv) * np.sqrt(np.abs(fv))


def l2_normalize(fv):
    """Scale the vectors to unit euclidean norm.

    Vectors with zero norm cannot be normalized and are returned as they are.

    Parameters
    ----------
    fv : array_like
         A vector or a matrix with one vector per row

    Return
    ------
    A new array, fv is left untouched
    """
    fv = np.array(fv, dtype=np.float64)
    norms = np.sqrt(np.einsum("...j,...j", fv, fv))

    zero = norms == 0
    if np.any(zero):
        logger.warning(
            "%d vector(s) with zero norm were left unnormalized",
            np.count_nonzero(zero)
        )

    norms = np.where(zero, 1.0, norms)
    fv /= norms[..., np.newaxis]

    return fv
