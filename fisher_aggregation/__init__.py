from .fv import FisherVectorEncoder
from .mixture import DiagonalGaussianMixture
from .normalization import l2_normalize, power_normalize


__version__ = "0.1"
__all__ = ["DiagonalGaussianMixture", "FisherVectorEncoder", "l2_normalize",
           "power_normalize"]
