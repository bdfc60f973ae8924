"""
Principal component analysis of samples x regions methylation matrices.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA

logger = logging.getLogger(__name__)


class PCAResult:
    """
    Fitted principal components, laid out like R's ``prcomp`` output.

    Attributes:
        scores: Sample coordinates, samples x PCs (``x`` in prcomp)
        rotation: Loadings, features x PCs
        sdev: Standard deviation of each PC
        center: Feature means removed before decomposition
        scale: Feature standard deviations used for scaling (None if unscaled)
    """

    def __init__(
        self,
        scores: pd.DataFrame,
        rotation: pd.DataFrame,
        sdev: np.ndarray,
        center: pd.Series,
        scale: Optional[pd.Series] = None
    ):
        self.scores = scores
        self.rotation = rotation
        self.sdev = sdev
        self.center = center
        self.scale = scale

    @property
    def explained_variance_ratio(self) -> np.ndarray:
        variance = self.sdev ** 2
        return variance / variance.sum()

    def summary(self) -> pd.DataFrame:
        """Importance of components: standard deviation and variance proportions."""
        ratio = self.explained_variance_ratio
        return pd.DataFrame(
            [self.sdev, ratio, np.cumsum(ratio)],
            index=["Standard deviation", "Proportion of Variance", "Cumulative Proportion"],
            columns=self.scores.columns
        )

    def axis_label(self, component: int) -> str:
        """Axis title for a 1-based component, e.g. ``PC1 (42.0% explained var.)``."""
        pct = self.explained_variance_ratio[component - 1] * 100
        return f"PC{component} ({pct:.1f}% explained var.)"

    def __repr__(self) -> str:
        return f"PCAResult({self.scores.shape[0]} samples, {self.scores.shape[1]} PCs)"


def run_pca(matrix: pd.DataFrame, scale: bool = True) -> PCAResult:
    """
    Centre, optionally scale, and decompose a samples x features matrix.

    Scaling uses the sample standard deviation (ddof=1) so that the squared
    ``sdev`` are the eigenvalues of the correlation matrix, as with
    ``prcomp(center = TRUE, scale. = TRUE)``.

    Args:
        matrix: DataFrame samples x features without missing values
        scale: Scale features to unit variance

    Returns:
        PCAResult with min(n_samples, n_features) components

    Raises:
        ValueError: On missing values, fewer than two samples, or a constant
            feature when scaling
    """
    X = matrix.astype(float)
    if X.isna().to_numpy().any():
        raise ValueError("PCA input contains missing values")
    if X.shape[0] < 2 or X.shape[1] < 1:
        raise ValueError(f"PCA needs at least 2 samples and 1 feature, got {X.shape}")

    center = X.mean(axis=0)
    X_scaled = X - center

    sd = None
    if scale:
        sd = X.std(axis=0, ddof=1)
        constant = sd.index[sd.to_numpy() == 0]
        if len(constant):
            raise ValueError(
                f"Cannot rescale a constant/zero column to unit variance: {list(constant[:5])}"
            )
        X_scaled = X_scaled / sd

    n_components = min(X.shape)
    pca = PCA(n_components=n_components, svd_solver="full")
    coords = pca.fit_transform(X_scaled.to_numpy())

    pc_names = [f"PC{i + 1}" for i in range(n_components)]
    result = PCAResult(
        scores=pd.DataFrame(coords, index=X.index, columns=pc_names),
        rotation=pd.DataFrame(pca.components_.T, index=X.columns, columns=pc_names),
        sdev=np.sqrt(pca.explained_variance_),
        center=center,
        scale=sd
    )

    logger.info(f"PCA of {X.shape[0]} samples x {X.shape[1]} features")
    return result
