"""
Algorithms module: sum-product and variational Bayes drivers.
"""

from forney.algorithms.base import InferenceAlgorithm
from forney.algorithms.sum_product import SumProduct
from forney.algorithms.variational_bayes import VariationalBayes, VariationalCompiler

__all__ = [
    "InferenceAlgorithm",
    "SumProduct",
    "VariationalBayes",
    "VariationalCompiler",
]
