"""
Visualization modules for DMR exploratory analysis.
"""

from .plots import PlotGenerator, data_ellipse
from .style import get_color_palette, setup_publication_style

__all__ = ["PlotGenerator", "data_ellipse", "get_color_palette", "setup_publication_style"]
