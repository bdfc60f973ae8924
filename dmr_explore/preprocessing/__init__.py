"""
Preprocessing modules for DMR exploratory analysis.
"""

from .genome import (
    SUPPORTED_GENOMES,
    keep_standard_chromosomes,
    standard_chromosomes,
    tile_genome,
    validate_genome,
)
from .transformers import RegionMatrixBuilder

__all__ = [
    "SUPPORTED_GENOMES",
    "RegionMatrixBuilder",
    "keep_standard_chromosomes",
    "standard_chromosomes",
    "tile_genome",
    "validate_genome",
]
