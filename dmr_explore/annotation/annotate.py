"""
Overlap regions with annotations and summarize annotation categories.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..preprocessing.genome import COORD_COLS
from ..preprocessing.intervals import overlap_join

logger = logging.getLogger(__name__)

ALL_LABEL = "All"
BACKGROUND_LABEL = "Background"


def annotate_regions(
    regions: pd.DataFrame,
    annotations: pd.DataFrame,
    quiet: bool = False
) -> pd.DataFrame:
    """
    Annotate regions with every overlapping annotation, ignoring strand.

    Args:
        regions: Region table (Chromosome, Start, End, plus any columns)
        annotations: Annotation table from AnnotationBuilder
        quiet: Suppress the summary log message

    Returns:
        One row per (region, overlapping annotation) pair, region columns
        first and annotation columns prefixed ``annot.``. Regions without
        any overlap are dropped. Rows keep the input region order.
    """
    left = regions.reset_index(drop=True).assign(_region_idx=np.arange(len(regions)))

    annot_cols = [c for c in annotations.columns if c not in COORD_COLS]
    right = annotations[COORD_COLS + annot_cols].rename(
        columns={c: f"_annot_{c}" for c in annot_cols}
    )

    joined = overlap_join(left, right, suffix="_annot")
    if joined.empty:
        if not quiet:
            logger.warning("No regions overlap the annotations")
        columns = list(regions.columns) + ["annot.start", "annot.end"] + [f"annot.{c}" for c in annot_cols]
        return pd.DataFrame(columns=columns)

    joined = joined.sort_values(["_region_idx", "Start_annot"], kind="mergesort")
    joined = joined.rename(columns={
        "Start_annot": "annot.start",
        "End_annot": "annot.end",
        **{f"_annot_{c}": f"annot.{c}" for c in annot_cols}
    })

    if not quiet:
        n_regions = joined["_region_idx"].nunique()
        logger.info(f"Annotated {n_regions} of {len(regions)} regions "
                    f"({len(joined)} region-annotation pairs)")

    ordered = list(regions.columns) + ["annot.start", "annot.end"] + [f"annot.{c}" for c in annot_cols]
    return joined[ordered].reset_index(drop=True)


def summarize_categorical(
    annotated_regions: pd.DataFrame,
    annotated_random: Optional[pd.DataFrame] = None,
    x: str = "direction",
    fill: str = "annot.type",
    x_order: Optional[Sequence[str]] = None,
    fill_order: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """
    Count and proportion of annotation categories per region class.

    A region overlapping several annotations of the same category counts
    once for that category. An ``All`` class covering every annotated region
    is added in front, and a ``Background`` class from ``annotated_random``
    at the end.

    Args:
        annotated_regions: Output of ``annotate_regions`` for significant regions
        annotated_random: Output of ``annotate_regions`` for background regions
        x: Column classifying regions (e.g., direction)
        fill: Column holding the annotation category
        x_order: Region classes to keep, in order
        fill_order: Categories to keep, in order

    Returns:
        DataFrame with columns ``x``, ``fill``, ``count`` and ``proportion``;
        ``x`` and ``fill`` are ordered categoricals
    """
    key = COORD_COLS + [x, fill]

    regions = annotated_regions.drop_duplicates(subset=key)
    if x_order is None:
        x_order = sorted(regions[x].dropna().unique())
    if fill_order is None:
        fill_order = sorted(regions[fill].dropna().unique())

    parts = [
        regions.assign(**{x: ALL_LABEL}),
        regions[regions[x].isin(x_order)],
    ]
    x_levels: List[str] = [ALL_LABEL, *x_order]

    if annotated_random is not None:
        background = annotated_random.assign(**{x: BACKGROUND_LABEL})
        parts.append(background.drop_duplicates(subset=key))
        x_levels.append(BACKGROUND_LABEL)

    combined = pd.concat([p[[x, fill]] for p in parts], ignore_index=True)
    combined = combined[combined[fill].isin(fill_order)]

    counts = combined.groupby([x, fill]).size()
    index = pd.MultiIndex.from_product([x_levels, list(fill_order)], names=[x, fill])
    counts = counts.reindex(index, fill_value=0).rename("count").reset_index()

    totals = counts.groupby(x)["count"].transform("sum")
    counts["proportion"] = np.where(totals > 0, counts["count"] / totals.where(totals > 0, 1), 0.0)

    counts[x] = pd.Categorical(counts[x], categories=x_levels, ordered=True)
    counts[fill] = pd.Categorical(counts[fill], categories=list(fill_order), ordered=True)
    return counts
