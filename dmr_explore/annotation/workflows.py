"""
CpG and gene context annotation plots for significant vs. background regions.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd
from matplotlib.figure import Figure

from ..data_loaders.regions import HYPER, HYPO, assign_direction, load_chrom_sizes
from ..preprocessing.genome import common_name, keep_standard_chromosomes, validate_genome
from ..utils.config import Config, load_config
from ..visualization.plots import PlotGenerator
from .annotate import ALL_LABEL, BACKGROUND_LABEL, annotate_regions, summarize_categorical
from .builder import AnnotationBuilder, load_cpg_islands, load_enhancers, load_gene_models
from .export import annotations_to_bed

logger = logging.getLogger(__name__)

X_ORDER = [HYPER, HYPO]
X_LABELS = [ALL_LABEL, HYPER, HYPO, BACKGROUND_LABEL]

# BED file name -> gene annotation category
GENIC_BED_FILES = {
    "enhancers.bed": "enhancers_fantom",
    "promoters.bed": "genes_promoters",
    "introns.bed": "genes_introns",
    "boundaries.bed": "genes_intronexonboundaries",
    "intergenic.bed": "genes_intergenic",
    "exons.bed": "genes_exons",
    "fiveUTRs.bed": "genes_5UTRs",
    "threeUTRs.bed": "genes_3UTRs",
    "onetofivekb.bed": "genes_1to5kb",
}


def has_fantom_enhancers(genome: str) -> bool:
    return genome in ("hg38", "mm10")


def cpg_fill_order(genome: str) -> List[str]:
    return [f"{genome}_cpg_{c}" for c in ("islands", "shores", "shelves", "inter")]


def genic_fill_order(genome: str) -> List[str]:
    order = [f"{genome}_enhancers_fantom"] if has_fantom_enhancers(genome) else []
    return order + [
        f"{genome}_genes_{c}"
        for c in ("1to5kb", "promoters", "5UTRs", "exons", "intronexonboundaries",
                  "introns", "3UTRs", "intergenic")
    ]


def build_genome_annotations(
    genome: str,
    names: Iterable[str],
    config: Optional[Config] = None,
    chrom_sizes: Optional[Union[Mapping[str, int], pd.Series]] = None,
    cpg_islands: Optional[pd.DataFrame] = None,
    gene_models: Optional[pd.DataFrame] = None,
    enhancers: Optional[pd.DataFrame] = None
) -> pd.DataFrame:
    """
    Build annotations, reading any source not passed in from the configured files.

    Config file keys: ``chrom_sizes``, ``cpg_islands``, ``genes`` (GTF),
    ``enhancers`` (BED).

    Args:
        genome: Genome identifier
        names: Annotation or shortcut names (see AnnotationBuilder.build_annotations)
        config: Configuration object (default: load_config(genome=genome))
        chrom_sizes: Chromosome lengths
        cpg_islands: CpG island regions
        gene_models: GTF records
        enhancers: Enhancer regions

    Returns:
        Annotation table pruned to standard chromosomes
    """
    if config is None:
        config = load_config(genome=genome)

    names = list(names)
    builder_needs = {
        "cpg": any("_cpg" in n for n in names),
        "genes": any("genes" in n for n in names),
        "enhancers": any("enhancers" in n for n in names),
    }

    if chrom_sizes is None:
        chrom_sizes = load_chrom_sizes(_require_path(config, "chrom_sizes"))
    if builder_needs["cpg"] and cpg_islands is None:
        cpg_islands = load_cpg_islands(_require_path(config, "cpg_islands"))
    if builder_needs["genes"] and gene_models is None:
        gene_models = load_gene_models(_require_path(config, "genes"))
    if builder_needs["enhancers"] and enhancers is None:
        enhancers = load_enhancers(_require_path(config, "enhancers"))

    builder = AnnotationBuilder(genome, chrom_sizes, config)
    return builder.build_annotations(
        names, cpg_islands=cpg_islands, gene_models=gene_models, enhancers=enhancers
    )


def _require_path(config: Any, key: str) -> Path:
    path = config.get_data_path(key)
    if path is None:
        raise ValueError(
            f"No '{key}' source configured for {config.genome_name}; "
            f"pass it directly or set genome.files.{key} in the config"
        )
    return path


def _annotate_and_plot(
    sig_regions: pd.DataFrame,
    regions: pd.DataFrame,
    annotations: pd.DataFrame,
    fill_order: List[str],
    config: Config,
    output_path: Optional[Union[str, Path]]
) -> Figure:
    logger.info("Annotating DMRs...")
    dm_annotated = annotate_regions(assign_direction(sig_regions), annotations)

    logger.info("Annotating background regions...")
    background_annotated = annotate_regions(regions, annotations)

    logger.info("Preparing annotation plot...")
    summary = summarize_categorical(
        dm_annotated,
        background_annotated,
        x="direction",
        fill="annot.type",
        x_order=X_ORDER,
        fill_order=fill_order,
    )

    plotter = PlotGenerator(config)
    return plotter.plot_annotation_bar(
        summary,
        x="direction",
        fill="annot.type",
        x_labels=X_LABELS,
        legend_title="Annotations",
        y_label="Proportion",
        output_path=output_path,
    )


def annotate_cpgs(
    sig_regions: pd.DataFrame,
    regions: pd.DataFrame,
    genome: str,
    annotations: Optional[pd.DataFrame] = None,
    save_annotations: bool = False,
    config: Optional[Config] = None,
    output_path: Optional[Union[str, Path]] = None,
    **sources
) -> Figure:
    """
    Annotate DMRs and background regions with CpG context and plot proportions.

    Args:
        sig_regions: Significant DMRs with a ``direction`` (or ``stat``) column
        regions: Background regions tested for differential methylation
        genome: Genome identifier ("hg38", "mm10" or "rn6")
        annotations: Prebuilt CpG annotations; built from sources when None
        save_annotations: Write ``<extra_dir>/<genome>CpG.bed`` for GAT
        config: Configuration object
        output_path: Optional path to save the figure
        **sources: ``chrom_sizes`` / ``cpg_islands`` overriding configured files

    Returns:
        Stacked proportion bar chart
    """
    validate_genome(genome)
    if config is None:
        config = load_config(genome=genome)

    logger.info(f"Building CpG annotations for {common_name(genome)} ({genome})")
    if annotations is None:
        annotations = build_genome_annotations(genome, [f"{genome}_cpgs"], config, **sources)
    annotations = keep_standard_chromosomes(annotations, genome)

    if save_annotations:
        logger.info("Saving files for GAT...")
        annotations_to_bed(annotations, config.get_output_path(f"{genome}CpG.bed", "extra"))

    return _annotate_and_plot(
        sig_regions, regions, annotations, cpg_fill_order(genome), config, output_path
    )


def annotate_genic(
    sig_regions: pd.DataFrame,
    regions: pd.DataFrame,
    genome: str,
    annotations: Optional[pd.DataFrame] = None,
    save_annotations: bool = False,
    config: Optional[Config] = None,
    output_path: Optional[Union[str, Path]] = None,
    **sources
) -> Figure:
    """
    Annotate DMRs and background regions with gene context and plot proportions.

    Gene context covers basic genes (1to5kb, promoters, 5'UTRs, exons,
    introns, 3'UTRs), intergenic regions, intron/exon boundaries and, for
    hg38 and mm10, FANTOM5 enhancers.

    Args:
        sig_regions: Significant DMRs with a ``direction`` (or ``stat``) column
        regions: Background regions tested for differential methylation
        genome: Genome identifier ("hg38", "mm10" or "rn6")
        annotations: Prebuilt gene annotations; built from sources when None
        save_annotations: Write one BED file per category under ``extra_dir``
        config: Configuration object
        output_path: Optional path to save the figure
        **sources: ``chrom_sizes`` / ``gene_models`` / ``enhancers``
            overriding configured files

    Returns:
        Stacked proportion bar chart
    """
    validate_genome(genome)
    if config is None:
        config = load_config(genome=genome)

    logger.info(f"Building gene region annotations for {common_name(genome)} ({genome})")
    if annotations is None:
        names = [
            f"{genome}_basicgenes",
            f"{genome}_genes_intergenic",
            f"{genome}_genes_intronexonboundaries",
        ]
        if has_fantom_enhancers(genome):
            names.append(f"{genome}_enhancers_fantom")
        annotations = build_genome_annotations(genome, names, config, **sources)
    annotations = keep_standard_chromosomes(annotations, genome)

    if save_annotations:
        logger.info("Saving files for GAT...")
        for file_name, category in GENIC_BED_FILES.items():
            if category == "enhancers_fantom" and not has_fantom_enhancers(genome):
                continue
            annotations_to_bed(
                annotations,
                config.get_output_path(file_name, "extra"),
                annotation_type=f"{genome}_{category}",
            )

    return _annotate_and_plot(
        sig_regions, regions, annotations, genic_fill_order(genome), config, output_path
    )
