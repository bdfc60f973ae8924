"""
Genomic annotation of DMRs: annotation building, region overlap,
category summaries, annotation plots and BED export.
"""

from .annotate import annotate_regions, summarize_categorical
from .builder import (
    AnnotationBuilder,
    load_cpg_islands,
    load_enhancers,
    load_gene_models,
)
from .export import annotations_to_bed, df_to_bed
from .workflows import annotate_cpgs, annotate_genic, build_genome_annotations

__all__ = [
    "AnnotationBuilder",
    "annotate_cpgs",
    "annotate_genic",
    "annotate_regions",
    "annotations_to_bed",
    "build_genome_annotations",
    "df_to_bed",
    "load_cpg_islands",
    "load_enhancers",
    "load_gene_models",
    "summarize_categorical",
]
