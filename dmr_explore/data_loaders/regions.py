"""
Region set loaders: DMR / background region tables, BED files and
chromosome sizes.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from .base import DataLoader

logger = logging.getLogger(__name__)

HYPER = "Hypermethylated"
HYPO = "Hypomethylated"

_COLUMN_ALIASES = {
    "seqnames": "Chromosome",
    "chr": "Chromosome",
    "chrom": "Chromosome",
    "chromosome": "Chromosome",
    "start": "Start",
    "end": "End",
    "Strand": "strand",
}


class RegionLoader(DataLoader):
    """
    Load genomic region sets (significant DMRs, background regions).

    Accepts either headerless BED files (0-based, half-open) or delimited
    tables with a header such as the data.frame export of a GRanges object
    (``seqnames``, ``start``, ``end``; 1-based, closed).
    """

    def load(
        self,
        file_path: Union[str, Path],
        one_based: Optional[bool] = None,
        **kwargs
    ) -> pd.DataFrame:
        """
        Load a region table.

        Args:
            file_path: Path to BED / CSV / TSV file
            one_based: Whether start coordinates are 1-based. Defaults to
                False for ``.bed`` files and True otherwise.

        Returns:
            DataFrame with Chromosome, Start, End (0-based, half-open) and
            any extra columns from the file
        """
        path = self._resolve_path(file_path)
        self._validate_file(path)

        is_bed = ".bed" in [s.lower() for s in path.suffixes]
        if one_based is None:
            one_based = not is_bed

        logger.info(f"Loading regions from {path.name}...")
        if is_bed:
            df = self._read_table(path, header=None, comment="#", **kwargs)
            names = ["Chromosome", "Start", "End", "name", "score", "strand"]
            df.columns = names[:df.shape[1]] + [f"V{i + 1}" for i in range(len(names), df.shape[1])]
        else:
            df = self._read_table(path, **kwargs)

        regions = normalize_regions(df, one_based=one_based)
        logger.info(f"Loaded {len(regions)} regions")
        return regions


def normalize_regions(df: pd.DataFrame, one_based: bool = False) -> pd.DataFrame:
    """
    Rename coordinate columns to Chromosome/Start/End and convert to 0-based.

    Args:
        df: Region table
        one_based: Whether ``df`` uses 1-based closed coordinates

    Returns:
        Normalized copy
    """
    regions = df.rename(columns={k: v for k, v in _COLUMN_ALIASES.items() if k in df.columns})
    regions = regions.drop(columns=["width"], errors="ignore")

    missing = [c for c in ("Chromosome", "Start", "End") if c not in regions.columns]
    if missing:
        raise KeyError(f"Region table is missing coordinate columns: {missing}")

    regions["Chromosome"] = regions["Chromosome"].astype(str)
    regions["Start"] = regions["Start"].astype(np.int64)
    regions["End"] = regions["End"].astype(np.int64)
    if one_based:
        regions["Start"] -= 1

    if (regions["End"] <= regions["Start"]).any():
        raise ValueError("Region table contains intervals with End <= Start")

    return regions.reset_index(drop=True)


def assign_direction(regions: pd.DataFrame, stat_col: str = "stat") -> pd.DataFrame:
    """
    Ensure a ``direction`` column (Hypermethylated / Hypomethylated).

    An existing column is kept. Otherwise it is derived from the sign of the
    test statistic: positive is hypermethylated.
    """
    if "direction" in regions.columns:
        return regions
    if stat_col not in regions.columns:
        raise KeyError(f"Regions need a 'direction' or '{stat_col}' column")

    regions = regions.copy()
    regions["direction"] = np.where(regions[stat_col] > 0, HYPER, HYPO)
    return regions


def load_chrom_sizes(file_path: Union[str, Path]) -> pd.Series:
    """
    Read a UCSC ``chrom.sizes`` file (chromosome<TAB>length).

    Returns:
        Series of lengths indexed by chromosome name
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Chromosome sizes file not found: {path}")

    sizes = pd.read_csv(path, sep="\t", header=None, usecols=[0, 1],
                        names=["Chromosome", "length"], comment="#")
    logger.info(f"Loaded sizes for {len(sizes)} chromosomes from {path.name}")
    return pd.Series(sizes["length"].astype(np.int64).values,
                     index=sizes["Chromosome"].astype(str).values,
                     name="length")
