"""
Smoothed methylation data container and loader.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from .base import DataLoader

logger = logging.getLogger(__name__)

CHROM_ALIASES = ("chr", "chrom", "chromosome", "seqnames", "Chromosome")
POS_ALIASES = ("pos", "position", "start", "Start", "loc")


class MethylationData:
    """
    Smoothed per-CpG methylation for a set of samples.

    Attributes:
        loci: DataFrame with Chromosome, Start, End (0-based, one base wide)
        meth: DataFrame of smoothed methylation proportions, loci x samples,
            sharing ``loci``'s index
        sample_info: Sample sheet indexed by sample name
    """

    def __init__(
        self,
        loci: pd.DataFrame,
        meth: pd.DataFrame,
        sample_info: Optional[pd.DataFrame] = None
    ):
        if len(loci) != len(meth):
            raise ValueError(
                f"Loci ({len(loci)}) and methylation rows ({len(meth)}) are not aligned"
            )

        self.loci = loci[["Chromosome", "Start", "End"]].reset_index(drop=True)
        self.meth = meth.reset_index(drop=True).astype(float)

        if sample_info is None:
            sample_info = pd.DataFrame(index=pd.Index(self.meth.columns, name="sample"))
        missing = [s for s in self.meth.columns if s not in sample_info.index]
        if missing:
            raise ValueError(f"Samples missing from sample sheet: {missing}")
        self.sample_info = sample_info.loc[list(self.meth.columns)]

    @property
    def samples(self) -> List[str]:
        return list(self.meth.columns)

    @property
    def n_loci(self) -> int:
        return len(self.loci)

    def get_group(self, column: str) -> pd.Series:
        """Per-sample labels from the sample sheet, in sample order."""
        if column not in self.sample_info.columns:
            raise KeyError(
                f"Column '{column}' not in sample sheet "
                f"(available: {list(self.sample_info.columns)})"
            )
        return self.sample_info[column]

    def __repr__(self) -> str:
        return f"MethylationData({self.n_loci} loci x {len(self.samples)} samples)"


class SmoothedMethylationLoader(DataLoader):
    """
    Load smoothed methylation tables exported from an upstream smoother.

    Expected layout: one row per CpG with a chromosome column, a 1-based
    position column and one column per sample. Handles:
    - Column name aliases (chr/seqnames, pos/start)
    - X prefix added by R to numeric sample names
    - Percent values (rescaled to proportions)
    """

    def load(
        self,
        file_path: Union[str, Path],
        sample_info: Optional[pd.DataFrame] = None,
        sample_filter: Optional[List[str]] = None,
        handle_x_prefix: bool = True,
        **kwargs
    ) -> MethylationData:
        """
        Load smoothed methylation data from a CSV/TSV file.

        Args:
            file_path: Path to the per-CpG methylation table
            sample_info: Optional sample sheet indexed by sample name
            sample_filter: Optional list of sample IDs to keep
            handle_x_prefix: Strip X prefix from numeric sample names

        Returns:
            MethylationData with loci and loci x samples matrix
        """
        path = self._resolve_path(file_path)
        self._validate_file(path)

        logger.info(f"Loading smoothed methylation from {path.name}...")
        df = self._read_table(path, **kwargs)

        chrom_col = self._find_column(df, CHROM_ALIASES, "chromosome")
        pos_col = self._find_column(df, POS_ALIASES, "position")

        positions = df[pos_col].astype(np.int64)
        loci = pd.DataFrame({
            "Chromosome": df[chrom_col].astype(str),
            "Start": positions - 1,
            "End": positions
        })

        meth = df.drop(columns=[chrom_col, pos_col])
        meth = meth.drop(columns=[c for c in ("end", "End", "strand", "width") if c in meth.columns])

        if handle_x_prefix:
            meth = self._normalize_column_names(meth)

        if sample_filter is not None:
            available = [s for s in sample_filter if s in meth.columns]
            meth = meth[available]
            logger.info(f"Filtered to {len(available)} samples")

        meth = self.to_proportions(meth)

        if sample_info is not None:
            sample_info = sample_info.loc[[s for s in sample_info.index if s in meth.columns]]

        data = MethylationData(loci, meth, sample_info)
        logger.info(f"Loaded {data.n_loci} CpGs x {len(data.samples)} samples")
        return data

    @staticmethod
    def _find_column(df: pd.DataFrame, aliases, what: str) -> str:
        for alias in aliases:
            if alias in df.columns:
                return alias
        raise KeyError(f"No {what} column found (tried {', '.join(aliases)})")

    def _normalize_column_names(self, df: pd.DataFrame) -> pd.DataFrame:
        """Remove X prefix from sample names R made syntactic."""
        new_cols = []
        for col in df.columns:
            col = str(col)
            if col.startswith('X') and col[1:].replace('_', '').replace('.', '').isdigit():
                new_cols.append(col[1:])
            else:
                new_cols.append(col)
        df.columns = new_cols
        return df

    def to_proportions(self, meth: pd.DataFrame) -> pd.DataFrame:
        """
        Rescale percent methylation to proportions.

        Values are treated as percent when any value exceeds 1.
        """
        meth = meth.apply(pd.to_numeric, errors="coerce")
        if np.nanmax(meth.to_numpy(dtype=float), initial=0.0) > 1:
            logger.info("Methylation values look like percentages, rescaling to [0, 1]")
            meth = meth / 100
        return meth
