"""
Dimensionality reduction models for methylation matrices.
"""

from .pca import PCAResult, run_pca

__all__ = ["PCAResult", "run_pca"]
