import numpy as np
import pandas as pd
import pytest
from matplotlib.figure import Figure

from dmr_explore.models.pca import run_pca
from dmr_explore.visualization import PlotGenerator, data_ellipse, get_color_palette


def test_data_ellipse_centred_on_mean():
    rng = np.random.default_rng(0)
    points = rng.normal(loc=[3.0, -1.0], size=(50, 2))
    ellipse = data_ellipse(points, prob=0.68, n_points=200)

    assert ellipse.shape == (200, 2)
    np.testing.assert_allclose(ellipse.mean(axis=0), points.mean(axis=0), atol=0.1)


def test_data_ellipse_needs_three_points():
    assert data_ellipse(np.array([[0.0, 1.0], [1.0, 0.0]])) is None


def test_data_ellipse_singular_covariance():
    points = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    assert data_ellipse(points) is None


def test_color_palette_overrides():
    class Cfg:
        viz_params = {"colors": {"Case": "#d62728", "Other": "#000000"}}

    colors = get_color_palette(["Control", "Case"], Cfg())
    assert colors["Case"] == "#d62728"
    assert "Other" not in colors
    assert len(colors) == 2


def test_plot_pca_labels_and_legend(tmp_path):
    rng = np.random.default_rng(1)
    matrix = pd.DataFrame(rng.normal(size=(6, 4)), index=list("abcdef"))
    result = run_pca(matrix)

    out = tmp_path / "pca.pdf"
    fig = PlotGenerator().plot_pca(result, ["Case", "Case", "Case", "Control", "Control", "Control"],
                                   title="Test PCA", output_path=out)

    assert isinstance(fig, Figure)
    assert out.exists()
    ax = fig.axes[0]
    assert ax.get_xlabel().startswith("PC1 (")
    assert ax.get_xlabel().endswith("% explained var.)")
    assert ax.get_title() == "Test PCA"
    assert [t.get_text() for t in ax.get_legend().get_texts()] == ["Case", "Control"]


def test_plot_density():
    long_df = pd.DataFrame({
        "variable": ["A"] * 5 + ["B"] * 5,
        "value": [10.0, 20.0, 30.0, 35.0, 50.0, 60.0, 70.0, 75.0, 80.0, 95.0],
    })
    fig = PlotGenerator().plot_density(long_df, group_order=["A", "B"], title="Density")
    ax = fig.axes[0]

    assert ax.get_xlabel() == "Percent Methylation"
    assert ax.get_ylabel() == "Density"
    assert list(ax.get_xticks()) == [0, 25, 50, 75, 100]


def test_plot_annotation_bar(tmp_path):
    x_levels = ["All", "Hypermethylated", "Hypomethylated", "Background"]
    fill_levels = ["islands", "shores"]
    summary = pd.DataFrame({
        "direction": pd.Categorical(np.repeat(x_levels, 2), categories=x_levels, ordered=True),
        "annot.type": pd.Categorical(fill_levels * 4, categories=fill_levels, ordered=True),
        "count": [1, 1, 1, 0, 0, 1, 2, 2],
        "proportion": [0.5, 0.5, 1.0, 0.0, 0.0, 1.0, 0.5, 0.5],
    })

    out = tmp_path / "bars.pdf"
    fig = PlotGenerator().plot_annotation_bar(summary, output_path=out)
    ax = fig.axes[0]

    assert out.exists()
    assert [t.get_text() for t in ax.get_xticklabels()] == x_levels
    assert ax.get_ylabel() == "Proportion"
    assert ax.get_legend().get_title().get_text() == "Annotations"
    # stacks reach one
    tops = {}
    for patch in ax.patches:
        x = round(patch.get_x() + patch.get_width() / 2)
        tops[x] = max(tops.get(x, 0), patch.get_y() + patch.get_height())
    assert all(top == pytest.approx(1.0) for top in tops.values())
