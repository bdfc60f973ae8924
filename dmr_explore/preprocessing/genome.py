"""
Reference genome helpers: identifier validation, standard chromosomes and
genome tiling.
"""

import logging
from typing import Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_GENOMES = ("hg38", "mm10", "rn6")

_COMMON_NAMES = {"hg38": "human", "mm10": "mouse", "rn6": "rat"}
_N_AUTOSOMES = {"hg38": 22, "mm10": 19, "rn6": 20}

COORD_COLS = ["Chromosome", "Start", "End"]


def validate_genome(genome: str) -> str:
    """Raise ValueError unless ``genome`` is one of SUPPORTED_GENOMES."""
    if genome not in SUPPORTED_GENOMES:
        raise ValueError(
            f"Unsupported genome '{genome}', expected one of {', '.join(SUPPORTED_GENOMES)}"
        )
    return genome


def common_name(genome: str) -> str:
    return _COMMON_NAMES.get(genome, genome)


def standard_chromosomes(genome: str) -> List[str]:
    """Autosomes, sex chromosomes and mitochondrial chromosome, UCSC style."""
    validate_genome(genome)
    autosomes = [f"chr{i}" for i in range(1, _N_AUTOSOMES[genome] + 1)]
    return autosomes + ["chrX", "chrY", "chrM"]


def keep_standard_chromosomes(
    regions: pd.DataFrame,
    genome: Optional[str] = None,
    chrom_col: str = "Chromosome"
) -> pd.DataFrame:
    """
    Drop regions on non-standard sequences (coarse pruning).

    Args:
        regions: Region table with a chromosome column
        genome: Genome identifier. Without one, any sequence name containing
            an underscore or starting with ``chrUn`` is treated as non-standard.
        chrom_col: Name of the chromosome column

    Returns:
        Filtered copy of ``regions`` with a fresh index
    """
    chroms = regions[chrom_col].astype(str)
    if genome is not None:
        mask = chroms.isin(standard_chromosomes(genome))
    else:
        mask = ~chroms.str.contains("_") & ~chroms.str.startswith("chrUn")

    dropped = int((~mask).sum())
    if dropped:
        logger.debug(f"Pruned {dropped} regions on non-standard chromosomes")

    return regions.loc[mask].reset_index(drop=True)


def tile_genome(
    chrom_sizes: Union[Mapping[str, int], pd.Series],
    tile_width: int = 20000
) -> pd.DataFrame:
    """
    Tile every chromosome into consecutive windows of ``tile_width`` bases.

    The last tile of each chromosome is cut at the chromosome end.

    Args:
        chrom_sizes: Mapping of chromosome name -> length
        tile_width: Window width in bases

    Returns:
        DataFrame with Chromosome, Start, End (0-based, half-open)
    """
    if tile_width <= 0:
        raise ValueError(f"tile_width must be positive, got {tile_width}")

    tiles = []
    for chrom, length in dict(chrom_sizes).items():
        length = int(length)
        if length <= 0:
            continue
        starts = np.arange(0, length, tile_width, dtype=np.int64)
        ends = np.minimum(starts + tile_width, length)
        tiles.append(pd.DataFrame({"Chromosome": chrom, "Start": starts, "End": ends}))

    if not tiles:
        return pd.DataFrame({
            "Chromosome": pd.Series(dtype=str),
            "Start": pd.Series(dtype=np.int64),
            "End": pd.Series(dtype=np.int64)
        })

    tiled = pd.concat(tiles, ignore_index=True)
    logger.info(f"Tiled {len(chrom_sizes)} chromosomes into {len(tiled)} windows of {tile_width} bp")
    return tiled


def chrom_sizes_frame(chrom_sizes: Union[Mapping[str, int], pd.Series]) -> pd.DataFrame:
    """Whole-chromosome intervals, used as the genome when taking complements."""
    sizes: Dict[str, int] = {str(k): int(v) for k, v in dict(chrom_sizes).items()}
    return pd.DataFrame({
        "Chromosome": list(sizes.keys()),
        "Start": np.zeros(len(sizes), dtype=np.int64),
        "End": np.array(list(sizes.values()), dtype=np.int64)
    })
