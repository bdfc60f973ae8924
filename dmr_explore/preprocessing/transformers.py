"""
Region-level methylation matrices: per-region summaries of smoothed CpG
methylation, NA filtering, transposition and wide/long reshaping for plots.
"""

import logging
from typing import List, Sequence, Union

import numpy as np
import pandas as pd

from ..data_loaders.metadata import as_group_factor
from ..data_loaders.methylation import MethylationData
from .intervals import overlap_join

logger = logging.getLogger(__name__)


class RegionMatrixBuilder:
    """
    Summarize smoothed methylation over region sets.

    Reproduces the per-region mean of smoothed values (as bsseq's
    ``getMeth(type="smooth", what="perRegion")``) and the reshaping that the
    exploratory plots need.
    """

    def methylation_per_region(
        self,
        data: MethylationData,
        regions: pd.DataFrame
    ) -> pd.DataFrame:
        """
        Mean smoothed methylation of the CpGs inside each region.

        Args:
            data: Smoothed methylation data
            regions: Region table (Chromosome, Start, End)

        Returns:
            DataFrame regions x samples, aligned with ``regions``' rows.
            Regions containing no CpG are NaN.
        """
        region_keys = pd.DataFrame({
            "Chromosome": regions["Chromosome"].astype(str).to_numpy(),
            "Start": regions["Start"].to_numpy(),
            "End": regions["End"].to_numpy(),
            "region_idx": np.arange(len(regions))
        })
        loci = data.loci.assign(locus_idx=np.arange(data.n_loci))

        hits = overlap_join(region_keys, loci)
        per_region = pd.DataFrame(
            np.nan, index=np.arange(len(regions)), columns=data.samples
        )

        if not hits.empty:
            region_idx = hits["region_idx"].to_numpy(dtype=np.int64)
            locus_idx = hits["locus_idx"].to_numpy(dtype=np.int64)
            values = data.meth.iloc[locus_idx].set_axis(region_idx, axis=0)
            means = values.groupby(level=0).mean()
            per_region.loc[means.index, :] = means.to_numpy()

        n_covered = int(per_region.notna().any(axis=1).sum())
        logger.info(f"Summarized {data.n_loci} CpGs over {len(regions)} regions "
                    f"({n_covered} covered)")
        return per_region.set_axis(regions.index, axis=0)

    def region_matrix(
        self,
        data: MethylationData,
        regions: pd.DataFrame
    ) -> pd.DataFrame:
        """
        Build the samples x regions matrix used for PCA.

        Per-region values are bound to the regions, coordinate and annotation
        columns are dropped, regions with any missing value are removed and the
        result is transposed.

        Args:
            data: Smoothed methylation data
            regions: Region table

        Returns:
            DataFrame samples x regions, columns named ``chr:start-end``
        """
        per_region = self.methylation_per_region(data, regions)
        per_region.index = region_labels(regions)

        complete = per_region.dropna(axis=0, how="any")
        logger.info(f"Kept {len(complete)} of {len(per_region)} regions without missing values")

        matrix = complete.T
        matrix.index.name = "sample"
        return matrix

    def group_means(
        self,
        region_values: pd.DataFrame,
        group: Union[Sequence, pd.Series, pd.Categorical],
        percent: bool = True
    ) -> pd.DataFrame:
        """
        Per-group mean methylation of every region.

        Args:
            region_values: DataFrame regions x samples (no missing values)
            group: Per-sample labels, aligned with the columns
            percent: Multiply by 100

        Returns:
            DataFrame regions x groups, one column per group level
        """
        factor = as_group_factor(group, samples=list(region_values.columns))
        labels = np.asarray(factor.astype(str))

        means = {}
        for level in factor.categories:
            cols = region_values.columns[labels == str(level)]
            means[str(level)] = region_values[cols].mean(axis=1)

        result = pd.DataFrame(means, index=region_values.index)
        return result * 100 if percent else result

    def to_long(
        self,
        wide: pd.DataFrame,
        var_name: str = "variable",
        value_name: str = "value"
    ) -> pd.DataFrame:
        """Pivot wide to long (one row per region and column)."""
        return wide.melt(var_name=var_name, value_name=value_name)


def region_labels(regions: pd.DataFrame) -> List[str]:
    """``chr:start-end`` label for each region, 1-based start for display."""
    return [
        f"{c}:{s + 1}-{e}"
        for c, s, e in zip(regions["Chromosome"], regions["Start"], regions["End"])
    ]

