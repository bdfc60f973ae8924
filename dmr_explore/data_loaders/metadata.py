"""
Sample sheet loader and group factor helpers.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .base import DataLoader

logger = logging.getLogger(__name__)


class SampleSheetLoader(DataLoader):
    """
    Load sample metadata (one row per sample) and derive group factors.

    Handles different column naming conventions.
    """

    def load(
        self,
        file_path: Union[str, Path],
        column_mapping: Optional[Dict[str, str]] = None,
        sample_col: str = "sample",
        **kwargs
    ) -> pd.DataFrame:
        """
        Load a sample sheet.

        Args:
            file_path: Path to sample sheet CSV/TSV
            column_mapping: Optional mapping to standardize column names
                           e.g., {"sample": "Sample_Name", "group": "Diagnosis"}
            sample_col: Column (after mapping) holding sample names

        Returns:
            DataFrame indexed by sample name
        """
        path = self._resolve_path(file_path)
        self._validate_file(path)

        logger.info(f"Loading sample sheet from {path.name}...")
        df = self._read_table(path, **kwargs)

        if column_mapping:
            reverse_mapping = {v: k for k, v in column_mapping.items()}
            df = df.rename(columns=reverse_mapping)

        if sample_col not in df.columns:
            raise KeyError(f"Sample column '{sample_col}' not in sample sheet")

        df[sample_col] = df[sample_col].astype(str)
        df = df.set_index(sample_col)
        df.index.name = "sample"

        logger.info(f"Loaded metadata for {len(df)} samples")
        return df


def as_group_factor(
    group: Union[Sequence, pd.Series, pd.Categorical],
    samples: Optional[Sequence[str]] = None
) -> pd.Categorical:
    """
    Coerce per-sample labels to a categorical factor.

    Categories keep the order of an incoming Categorical, otherwise they are
    the sorted unique labels. A Series indexed by sample name is reordered to
    ``samples`` when given.
    """
    if isinstance(group, pd.Series):
        if samples is not None and set(samples).issubset(group.index):
            group = group.loc[list(samples)]
        group = group.array if isinstance(group.dtype, pd.CategoricalDtype) else group.to_numpy()

    if isinstance(group, pd.Categorical):
        factor = group
    else:
        factor = pd.Categorical(list(group))

    if samples is not None and len(factor) != len(samples):
        raise ValueError(
            f"Group has {len(factor)} labels but there are {len(samples)} samples"
        )
    return factor.remove_unused_categories()


def appearance_order(group: Union[Sequence, pd.Categorical]) -> List[str]:
    """Group labels in order of first appearance (legend order)."""
    return list(pd.unique(pd.Series(list(group), dtype=object)))
