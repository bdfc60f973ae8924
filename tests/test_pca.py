import numpy as np
import pandas as pd
import pytest

from dmr_explore.models.pca import PCAResult, run_pca


@pytest.fixture
def matrix():
    rng = np.random.default_rng(42)
    values = rng.normal(size=(8, 5))
    values[:, 1] += 2 * values[:, 0]
    return pd.DataFrame(values, index=[f"s{i}" for i in range(8)],
                        columns=[f"r{j}" for j in range(5)])


def test_run_pca_shapes(matrix):
    result = run_pca(matrix)

    assert isinstance(result, PCAResult)
    assert result.scores.shape == (8, 5)
    assert result.rotation.shape == (5, 5)
    assert list(result.scores.index) == list(matrix.index)
    assert list(result.rotation.index) == list(matrix.columns)
    assert list(result.scores.columns) == ["PC1", "PC2", "PC3", "PC4", "PC5"]


def test_run_pca_matches_correlation_eigendecomposition(matrix):
    result = run_pca(matrix, scale=True)

    eigenvalues, eigenvectors = np.linalg.eigh(np.corrcoef(matrix.to_numpy(), rowvar=False))
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]

    np.testing.assert_allclose(result.sdev ** 2, eigenvalues, atol=1e-8)
    np.testing.assert_allclose(np.abs(result.rotation.to_numpy()), np.abs(eigenvectors), atol=1e-6)


def test_run_pca_scores_are_projections(matrix):
    result = run_pca(matrix)
    standardized = (matrix - result.center) / result.scale
    np.testing.assert_allclose(
        result.scores.to_numpy(), standardized.to_numpy() @ result.rotation.to_numpy(), atol=1e-8
    )


def test_summary_proportions(matrix):
    summary = run_pca(matrix).summary()

    assert list(summary.index) == ["Standard deviation", "Proportion of Variance",
                                   "Cumulative Proportion"]
    assert summary.loc["Proportion of Variance"].sum() == pytest.approx(1.0)
    assert summary.loc["Cumulative Proportion"].iloc[-1] == pytest.approx(1.0)
    assert summary.loc["Proportion of Variance"].is_monotonic_decreasing


def test_axis_label(matrix):
    result = run_pca(matrix)
    pct = result.explained_variance_ratio[0] * 100
    assert result.axis_label(1) == f"PC1 ({pct:.1f}% explained var.)"


def test_unscaled_pca_has_no_scale(matrix):
    result = run_pca(matrix, scale=False)
    assert result.scale is None
    np.testing.assert_allclose(
        result.sdev ** 2,
        np.sort(np.linalg.eigvalsh(np.cov(matrix.to_numpy(), rowvar=False)))[::-1],
        atol=1e-8,
    )


def test_constant_column_raises(matrix):
    matrix["r2"] = 0.5
    with pytest.raises(ValueError, match="constant"):
        run_pca(matrix)


def test_missing_values_raise(matrix):
    matrix.iloc[0, 0] = np.nan
    with pytest.raises(ValueError, match="missing"):
        run_pca(matrix)


def test_single_sample_raises(matrix):
    with pytest.raises(ValueError):
        run_pca(matrix.iloc[:1])
