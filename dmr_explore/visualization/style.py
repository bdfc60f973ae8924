"""
Publication-ready plotting style configuration.
"""

from typing import Any, Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import seaborn as sns


def setup_publication_style(config: Optional[Any] = None) -> None:
    """
    Configure matplotlib for publication-quality figures.

    Args:
        config: Optional configuration object with viz_params
    """
    params = {
        "dpi": 300,
        "font_sizes": {
            "title": 16,
            "label": 14,
            "tick": 12,
            "legend": 12
        }
    }

    if config is not None and hasattr(config, "viz_params"):
        params.update(config.viz_params)

    plt.rcParams.update({
        "font.family": "sans-serif",
        "font.sans-serif": ["Arial", "Helvetica", "DejaVu Sans"],
        "font.size": params["font_sizes"]["tick"],
        "axes.titlesize": params["font_sizes"]["title"],
        "axes.labelsize": params["font_sizes"]["label"],
        "xtick.labelsize": params["font_sizes"]["tick"],
        "ytick.labelsize": params["font_sizes"]["tick"],
        "legend.fontsize": params["font_sizes"]["legend"],
        "figure.dpi": params["dpi"],
        "savefig.dpi": params["dpi"],
        "savefig.bbox": "tight",
        "savefig.pad_inches": 0.1,
        "axes.linewidth": 1.0,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "pdf.fonttype": 42,
        "ps.fonttype": 42,
    })


def get_color_palette(
    labels: Sequence[str],
    config: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Map labels to colors, evenly spaced hues unless overridden in config.

    Args:
        labels: Group or category labels, in legend order
        config: Optional configuration object with ``viz_params["colors"]``

    Returns:
        Dictionary mapping label to color
    """
    hues: List[Any] = sns.color_palette("husl", n_colors=max(len(labels), 1))
    colors = dict(zip(labels, hues))

    if config is not None and hasattr(config, "viz_params"):
        overrides = config.viz_params.get("colors", {}) or {}
        colors.update({k: v for k, v in overrides.items() if k in colors})

    return colors
