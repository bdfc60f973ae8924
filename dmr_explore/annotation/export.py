"""
BED export of region and annotation tables for external enrichment tools.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

logger = logging.getLogger(__name__)


def df_to_bed(
    df: pd.DataFrame,
    file_path: Union[str, Path],
    columns: Optional[Sequence[str]] = None
) -> Path:
    """
    Write a table as a BED file: tab-separated, no header, no index, no quotes.

    Args:
        df: Table whose first columns are chromosome, start and end
        file_path: Output path; parent directories are created
        columns: Columns to write, in order (default: all)

    Returns:
        Path written
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    out = df[list(columns)] if columns is not None else df
    out.to_csv(path, sep="\t", header=False, index=False, quoting=csv.QUOTE_NONE)

    logger.info(f"Wrote {len(out)} regions to {path}")
    return path


def annotations_to_bed(
    annotations: pd.DataFrame,
    file_path: Union[str, Path],
    annotation_type: Optional[str] = None
) -> Path:
    """
    Export annotations (chromosome, start, end, type) as BED.

    Args:
        annotations: Annotation table from AnnotationBuilder
        file_path: Output path
        annotation_type: Only export rows of this ``type``

    Returns:
        Path written
    """
    subset = annotations
    if annotation_type is not None:
        subset = annotations[annotations["type"] == annotation_type]
    # UCSC-style names only, no alt/random contigs
    subset = subset[~subset["Chromosome"].astype(str).str.contains("_")]
    return df_to_bed(subset, file_path, columns=["Chromosome", "Start", "End", "type"])
