"""
Interval arithmetic on region tables, backed by pyranges.

Region tables are plain DataFrames with Chromosome, Start, End (0-based,
half-open). Strand is carried in a lowercase ``strand`` column so that
overlap operations ignore it.
"""

import logging
from typing import List, Mapping, Optional, Union

import numpy as np
import pandas as pd
import pyranges as pr

from .genome import COORD_COLS, chrom_sizes_frame

logger = logging.getLogger(__name__)


def to_pyranges(df: pd.DataFrame) -> pr.PyRanges:
    """Convert a region table to PyRanges, dropping any strand information."""
    missing = [c for c in COORD_COLS if c not in df.columns]
    if missing:
        raise KeyError(f"Region table is missing columns: {missing}")

    gr_df = df.drop(columns=["Strand"], errors="ignore").copy()
    gr_df["Chromosome"] = gr_df["Chromosome"].astype(str)
    gr_df["Start"] = gr_df["Start"].astype(np.int64)
    gr_df["End"] = gr_df["End"].astype(np.int64)
    return pr.PyRanges(gr_df)


def from_pyranges(gr: pr.PyRanges, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Convert PyRanges back to a DataFrame with string chromosomes."""
    if len(gr) == 0:
        return pd.DataFrame(columns=columns if columns is not None else COORD_COLS)

    df = gr.df.copy()
    df["Chromosome"] = df["Chromosome"].astype(str)
    if columns is not None:
        df = df[columns]
    return df.reset_index(drop=True)


def overlap_join(
    left: pd.DataFrame,
    right: pd.DataFrame,
    suffix: str = "_b"
) -> pd.DataFrame:
    """
    Strand-ignoring overlap join, one row per overlapping (left, right) pair.

    Right-hand Start/End (and any clashing column) come back with ``suffix``.
    Pairs only touching at a boundary do not overlap.
    """
    empty = pd.DataFrame(columns=list(left.columns) + [f"Start{suffix}", f"End{suffix}"])
    if left.empty or right.empty:
        return empty

    joined = to_pyranges(left).join(to_pyranges(right), strandedness=False, suffix=suffix)
    if len(joined) == 0:
        return empty
    return from_pyranges(joined)


def merge_intervals(df: pd.DataFrame) -> pd.DataFrame:
    """Collapse overlapping and book-ended intervals (GenomicRanges::reduce)."""
    if df.empty:
        return pd.DataFrame(columns=COORD_COLS)
    merged = to_pyranges(df[COORD_COLS]).merge()
    return from_pyranges(merged, COORD_COLS)


def subtract_intervals(df: pd.DataFrame, other: pd.DataFrame) -> pd.DataFrame:
    """Parts of ``df`` not covered by ``other``; columns of ``df`` are kept."""
    columns = [c for c in df.columns if c != "Strand"]
    if df.empty or other.empty:
        return df[columns].reset_index(drop=True)

    # chromosomes without any subtrahend pass through untouched
    shared = df["Chromosome"].astype(str).isin(set(other["Chromosome"].astype(str)))
    untouched = df.loc[~shared, columns]
    if not shared.any():
        return untouched.reset_index(drop=True)

    remaining = to_pyranges(df.loc[shared]).subtract(to_pyranges(other[COORD_COLS]))
    parts = [untouched]
    if len(remaining):
        parts.append(from_pyranges(remaining, columns))
    return pd.concat(parts, ignore_index=True)


def complement(
    features: pd.DataFrame,
    chrom_sizes: Union[Mapping[str, int], pd.Series]
) -> pd.DataFrame:
    """Genome space not covered by ``features``."""
    genome = chrom_sizes_frame(chrom_sizes)
    if features.empty:
        return genome
    return merge_intervals(subtract_intervals(genome, merge_intervals(features)))


def clip_to_genome(
    df: pd.DataFrame,
    chrom_sizes: Union[Mapping[str, int], pd.Series]
) -> pd.DataFrame:
    """Clip intervals to [0, chromosome length) and drop empty ones."""
    sizes = pd.Series({str(k): int(v) for k, v in dict(chrom_sizes).items()}, dtype=np.int64)
    df = df[df["Chromosome"].astype(str).isin(sizes.index)].copy()
    ends = df["Chromosome"].astype(str).map(sizes).to_numpy()
    df["Start"] = np.clip(df["Start"].to_numpy(dtype=np.int64), 0, ends)
    df["End"] = np.clip(df["End"].to_numpy(dtype=np.int64), 0, ends)
    return df[df["End"] > df["Start"]].reset_index(drop=True)
