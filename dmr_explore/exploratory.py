"""
Exploratory plots of smoothed methylation: PCA of samples over region sets
and density of group-averaged methylation.
"""

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

import pandas as pd
from matplotlib.figure import Figure

from .annotation.workflows import build_genome_annotations
from .data_loaders.metadata import appearance_order, as_group_factor
from .data_loaders.methylation import MethylationData
from .models.pca import run_pca
from .preprocessing.genome import (
    keep_standard_chromosomes,
    tile_genome,
    validate_genome,
)
from .preprocessing.transformers import RegionMatrixBuilder
from .utils.config import Config
from .visualization.plots import PlotGenerator

logger = logging.getLogger(__name__)

GroupLike = Union[Sequence, pd.Series, pd.Categorical]
ChromSizes = Union[Mapping[str, int], pd.Series]

WINDOWS_PCA_TITLE = "Smoothed 20 Kb CpG Windows with CpG Islands"
CGI_PCA_TITLE = "Smoothed CpG Island Windows"
DENSITY_TITLE = "20 Kb CpG Windows with CpG Islands"


def _resolve_group(
    data: MethylationData,
    group: Optional[GroupLike],
    config: Optional[Config]
) -> GroupLike:
    """Use ``group`` when given, else the test covariate from the sample sheet."""
    if group is not None:
        return group
    column = "group"
    if config is not None:
        column = config.analysis_params.get("test_covariate", column)
    return data.get_group(column)


def _tile_width(config: Optional[Config]) -> int:
    if config is None:
        return 20000
    return int(config.analysis_params.get("tile_width", 20000))


def pca(
    matrix: pd.DataFrame,
    group: GroupLike,
    title: str,
    config: Optional[Config] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Figure:
    """
    PCA of a samples x regions matrix, plotted as PC1 vs PC2 coloured by group.

    Features are centred and scaled to unit variance before decomposition.

    Args:
        matrix: DataFrame samples x regions without missing values
        group: Per-sample labels (list, Series indexed by sample, or Categorical)
        title: Plot title
        config: Configuration object
        output_path: Optional path to save the figure

    Returns:
        Figure
    """
    logger.info("Performing PCA...")
    scale = True
    ellipse_prob = 0.68
    if config is not None:
        pca_params = config.analysis_params.get("pca", {})
        scale = pca_params.get("scale", scale)
        ellipse_prob = pca_params.get("ellipse_prob", ellipse_prob)

    result = run_pca(matrix, scale=scale)
    logger.info(f"PCA summary:\n{result.summary().round(4).to_string()}")

    factor = as_group_factor(group, samples=list(matrix.index))
    plotter = PlotGenerator(config)
    return plotter.plot_pca(
        result,
        groups=list(factor.astype(str)),
        group_order=appearance_order(factor.astype(str)),
        title=title,
        ellipse_prob=ellipse_prob,
        output_path=output_path,
    )


def windows_pca(
    data: MethylationData,
    chrom_sizes: ChromSizes,
    genome: Optional[str] = None,
    group: Optional[GroupLike] = None,
    config: Optional[Config] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Figure:
    """
    PCA of smoothed methylation over 20 kb windows of the standard chromosomes.

    Args:
        data: Smoothed methylation data
        chrom_sizes: Chromosome lengths
        genome: Genome identifier, used to select standard chromosomes
        group: Per-sample labels (default: test covariate from the sample sheet)
        config: Configuration object
        output_path: Optional path to save the figure

    Returns:
        Figure
    """
    if genome is not None:
        validate_genome(genome)
    group = _resolve_group(data, group, config)

    logger.info("Obtaining smoothed methylation values for 20 Kb windows")
    windows = keep_standard_chromosomes(tile_genome(chrom_sizes, _tile_width(config)), genome)
    matrix = RegionMatrixBuilder().region_matrix(data, windows)

    return pca(matrix, group, WINDOWS_PCA_TITLE, config=config, output_path=output_path)


def cgi_pca(
    data: MethylationData,
    genome: str,
    annotations: Optional[pd.DataFrame] = None,
    group: Optional[GroupLike] = None,
    cpg_islands: Optional[pd.DataFrame] = None,
    chrom_sizes: Optional[ChromSizes] = None,
    config: Optional[Config] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Figure:
    """
    PCA of smoothed methylation over CpG islands.

    Args:
        data: Smoothed methylation data
        genome: Genome identifier ("hg38", "mm10" or "rn6")
        annotations: Prebuilt annotations containing ``<genome>_cpg_islands``;
            built from ``cpg_islands`` / configured sources when None
        group: Per-sample labels (default: test covariate from the sample sheet)
        cpg_islands: CpG island regions
        chrom_sizes: Chromosome lengths
        config: Configuration object
        output_path: Optional path to save the figure

    Returns:
        Figure

    Raises:
        ValueError: On an unsupported genome or when no islands are available
    """
    validate_genome(genome)
    group = _resolve_group(data, group, config)

    logger.info(f"Obtaining smoothed methylation values for {genome} CpG islands")
    if annotations is None:
        annotations = build_genome_annotations(
            genome, [f"{genome}_cpg_islands"], config,
            chrom_sizes=chrom_sizes, cpg_islands=cpg_islands
        )

    islands = annotations[annotations["type"] == f"{genome}_cpg_islands"]
    islands = keep_standard_chromosomes(islands, genome)
    if islands.empty:
        raise ValueError(f"No {genome}_cpg_islands annotations available")

    matrix = RegionMatrixBuilder().region_matrix(data, islands)
    return pca(matrix, group, CGI_PCA_TITLE, config=config, output_path=output_path)


def density_plot(
    data: MethylationData,
    chrom_sizes: ChromSizes,
    genome: Optional[str] = None,
    group: Optional[GroupLike] = None,
    config: Optional[Config] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Figure:
    """
    Density of group-averaged percent methylation over 20 kb windows.

    Args:
        data: Smoothed methylation data
        chrom_sizes: Chromosome lengths
        genome: Genome identifier, used to select standard chromosomes
        group: Per-sample labels (default: test covariate from the sample sheet)
        config: Configuration object
        output_path: Optional path to save the figure

    Returns:
        Figure
    """
    if genome is not None:
        validate_genome(genome)
    group = _resolve_group(data, group, config)

    logger.info("Obtaining smoothed methylation values for 20 Kb windows")
    windows = keep_standard_chromosomes(tile_genome(chrom_sizes, _tile_width(config)), genome)

    builder = RegionMatrixBuilder()
    values = builder.methylation_per_region(data, windows).dropna(axis=0, how="any")

    factor = as_group_factor(group, samples=data.samples)
    means = builder.group_means(values, factor, percent=True)
    long_df = builder.to_long(means)

    plotter = PlotGenerator(config)
    return plotter.plot_density(
        long_df,
        group_order=appearance_order(factor.astype(str)),
        title=DENSITY_TITLE,
        output_path=output_path,
    )
