"""
Plotting functions for DMR exploratory analysis.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure
from scipy.stats import chi2

from ..models.pca import PCAResult
from .style import get_color_palette, setup_publication_style

logger = logging.getLogger(__name__)


def data_ellipse(points: np.ndarray, prob: float = 0.68, n_points: int = 100) -> Optional[np.ndarray]:
    """
    Normal-theory data ellipse enclosing ``prob`` of a 2-D point cloud.

    Args:
        points: Array of shape (n, 2)
        prob: Coverage probability
        n_points: Number of vertices

    Returns:
        Array of shape (n_points, 2), or None for fewer than three points or
        a singular covariance
    """
    if len(points) <= 2:
        return None

    sigma = np.cov(points, rowvar=False)
    try:
        lower = np.linalg.cholesky(sigma)
    except np.linalg.LinAlgError:
        return None

    theta = np.linspace(-np.pi, np.pi, n_points)
    circle = np.column_stack([np.cos(theta), np.sin(theta)])
    radius = np.sqrt(chi2.ppf(prob, df=2))
    return circle @ lower.T * radius + points.mean(axis=0)


class PlotGenerator:
    """
    Generate publication-ready plots for DMR exploratory analysis.

    Every method returns the matplotlib Figure and also writes it to
    ``output_path`` when one is given.
    """

    def __init__(self, config: Optional[Any] = None):
        """
        Initialize plot generator.

        Args:
            config: Configuration object with visualization parameters
        """
        self.config = config

        self.fig_sizes = {
            "pca": (8, 7),
            "density": (8, 6),
            "bar": (8, 9)
        }
        self.dpi = 300
        self.format = "pdf"

        if config is not None and hasattr(config, "viz_params"):
            self.fig_sizes.update(config.viz_params.get("figure_sizes", {}))
            self.dpi = config.viz_params.get("dpi", self.dpi)
            self.format = config.viz_params.get("format", self.format)

        setup_publication_style(config)

    def _finish(self, fig: Figure, output_path: Optional[Union[str, Path]], what: str) -> Figure:
        fig.tight_layout()
        if output_path is not None:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(output_path, format=output_path.suffix.lstrip(".") or self.format, dpi=self.dpi)
            plt.close(fig)
            logger.info(f"  {what} saved to {output_path}")
        return fig

    def plot_pca(
        self,
        result: PCAResult,
        groups: Sequence[str],
        group_order: Optional[List[str]] = None,
        title: Optional[str] = None,
        ellipse_prob: float = 0.68,
        output_path: Optional[Union[str, Path]] = None
    ) -> Figure:
        """
        PC1 vs PC2 biplot of sample scores, coloured by group, with a normal
        data ellipse per group and no variable arrows.

        Args:
            result: Fitted PCA
            groups: Group label of each sample (same order as result.scores)
            group_order: Legend order (default: order of first appearance)
            title: Plot title
            ellipse_prob: Coverage of the group ellipses
            output_path: Optional path to save figure

        Returns:
            Figure
        """
        logger.info("Plotting PCA...")
        scores = result.scores
        if scores.shape[1] < 2:
            raise ValueError("PCA biplot needs at least two components")

        labels = np.asarray([str(g) for g in groups])
        if group_order is None:
            group_order = list(pd.unique(labels))
        colors = get_color_palette(group_order, self.config)

        fig, ax = plt.subplots(figsize=self.fig_sizes["pca"])

        for label in group_order:
            mask = labels == label
            points = scores.loc[mask, ["PC1", "PC2"]].to_numpy()

            ellipse = data_ellipse(points, prob=ellipse_prob)
            if ellipse is not None:
                ax.plot(ellipse[:, 0], ellipse[:, 1], color=colors[label], lw=1.5)
            else:
                logger.debug(f"No ellipse for group '{label}' ({len(points)} samples)")

            ax.scatter(points[:, 0], points[:, 1], color=colors[label], s=64,
                       label=label, zorder=3)

        ax.axhline(0, color="grey", lw=0.5, alpha=0.6)
        ax.axvline(0, color="grey", lw=0.5, alpha=0.6)
        ax.set_xlabel(result.axis_label(1))
        ax.set_ylabel(result.axis_label(2))

        # theme_bw with a heavy border and no grid
        for spine in ax.spines.values():
            spine.set_visible(True)
            spine.set_linewidth(1.25)
        ax.tick_params(width=1.25)
        ax.grid(False)

        if title:
            ax.set_title(title, loc="center")

        ax.legend(ncol=2, frameon=False, title="")

        return self._finish(fig, output_path, "PCA plot")

    def plot_density(
        self,
        long_df: pd.DataFrame,
        group_order: List[str],
        title: Optional[str] = None,
        output_path: Optional[Union[str, Path]] = None
    ) -> Figure:
        """
        Overlaid density of percent methylation per group.

        Args:
            long_df: Long table with ``variable`` (group) and ``value`` (percent)
            group_order: Groups in legend order
            title: Plot title
            output_path: Optional path to save figure

        Returns:
            Figure
        """
        logger.info("Plotting density...")
        colors = get_color_palette(group_order, self.config)

        fig, ax = plt.subplots(figsize=self.fig_sizes["density"])

        sns.kdeplot(
            data=long_df,
            x="value",
            hue="variable",
            hue_order=group_order,
            palette=colors,
            fill=True,
            alpha=0.3,
            common_norm=False,
            ax=ax,
        )

        ax.set_xlabel("Percent Methylation")
        ax.set_ylabel("Density")
        ax.set_xticks([0, 25, 50, 75, 100])
        ax.margins(x=0.05, y=0)

        legend = ax.get_legend()
        if legend is not None:
            legend.set_title("Group")
            legend.set_frame_on(False)

        if title:
            ax.set_title(title)

        return self._finish(fig, output_path, "Density plot")

    def plot_annotation_bar(
        self,
        summary: pd.DataFrame,
        x: str = "direction",
        fill: str = "annot.type",
        x_labels: Optional[List[str]] = None,
        legend_title: str = "Annotations",
        y_label: str = "Proportion",
        title: Optional[str] = None,
        output_path: Optional[Union[str, Path]] = None
    ) -> Figure:
        """
        Stacked proportion bars of annotation categories per region class.

        Args:
            summary: Output of ``summarize_categorical``
            x: Region class column
            fill: Category column
            x_labels: Tick labels (default: the region classes)
            legend_title: Legend title
            y_label: Y-axis label
            title: Plot title
            output_path: Optional path to save figure

        Returns:
            Figure
        """
        logger.info("Plotting annotation proportions...")
        wide = (
            summary.groupby([summary[x].astype(str), summary[fill].astype(str)])["proportion"]
            .sum()
            .unstack(fill_value=0.0)
        )
        x_levels = list(summary[x].cat.categories)
        fill_levels = list(summary[fill].cat.categories)
        wide = wide.reindex(index=x_levels, columns=fill_levels, fill_value=0.0)

        colors = get_color_palette(fill_levels, self.config)
        fig, ax = plt.subplots(figsize=self.fig_sizes["bar"])

        positions = np.arange(len(x_levels))
        bottom = np.zeros(len(x_levels))
        for category in fill_levels:
            heights = wide[category].to_numpy(dtype=float)
            ax.bar(positions, heights, bottom=bottom, width=0.9,
                   color=colors[category], label=category)
            bottom += heights

        ax.set_xticks(positions)
        ax.set_xticklabels(x_labels if x_labels is not None else x_levels,
                           rotation=45, ha="right")
        ax.set_ylim(0, 1)
        ax.margins(y=0)
        ax.set_xlabel("")
        ax.set_ylabel(y_label)
        if title:
            ax.set_title(title)

        # top of the stack first, as in the bars
        handles, labels = ax.get_legend_handles_labels()
        ax.legend(handles[::-1], labels[::-1], title=legend_title, frameon=False,
                  loc="center left", bbox_to_anchor=(1.0, 0.5))

        return self._finish(fig, output_path, "Annotation plot")
