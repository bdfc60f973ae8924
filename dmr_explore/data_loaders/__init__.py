"""
Data loading modules for DMR exploratory analysis.

This module provides loaders for:
- Smoothed per-CpG methylation tables
- Sample sheets and group factors
- Region sets (DMRs, background regions, BED files) and chromosome sizes
"""

from .base import DataLoader
from .metadata import SampleSheetLoader, appearance_order, as_group_factor
from .methylation import MethylationData, SmoothedMethylationLoader
from .regions import RegionLoader, assign_direction, load_chrom_sizes, normalize_regions

__all__ = [
    "DataLoader",
    "MethylationData",
    "SmoothedMethylationLoader",
    "SampleSheetLoader",
    "RegionLoader",
    "appearance_order",
    "as_group_factor",
    "assign_direction",
    "load_chrom_sizes",
    "normalize_regions",
]
