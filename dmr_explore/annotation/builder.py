"""
Build CpG, gene and enhancer annotation sets from local annotation sources.

Annotation tables follow annotatr's layout: Chromosome, Start, End, strand,
id, tx_id, gene_id, symbol, type, with ``type`` such as ``hg38_cpg_shores``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
import pyranges as pr

from ..data_loaders.regions import RegionLoader
from ..preprocessing.genome import (
    COORD_COLS,
    keep_standard_chromosomes,
    validate_genome,
)
from ..preprocessing.intervals import (
    clip_to_genome,
    complement,
    merge_intervals,
    subtract_intervals,
)

logger = logging.getLogger(__name__)

ANNOTATION_COLS = COORD_COLS + ["strand", "id", "tx_id", "gene_id", "symbol", "type"]

CPG_CATEGORIES = ["cpg_islands", "cpg_shores", "cpg_shelves", "cpg_inter"]
BASIC_GENE_CATEGORIES = [
    "genes_1to5kb",
    "genes_promoters",
    "genes_5UTRs",
    "genes_exons",
    "genes_introns",
    "genes_3UTRs",
]
GENE_CATEGORIES = BASIC_GENE_CATEGORIES + ["genes_intronexonboundaries", "genes_intergenic"]
ENHANCER_CATEGORIES = ["enhancers_fantom"]

_ID_PREFIX = {
    "cpg_islands": "island",
    "cpg_shores": "shore",
    "cpg_shelves": "shelf",
    "cpg_inter": "inter",
    "genes_1to5kb": "1to5kb",
    "genes_promoters": "promoter",
    "genes_5UTRs": "5UTR",
    "genes_exons": "exon",
    "genes_introns": "intron",
    "genes_3UTRs": "3UTR",
    "genes_intronexonboundaries": "intronexonboundary",
    "genes_intergenic": "intergenic",
    "enhancers_fantom": "enhancer",
}

_FIVE_UTR_FEATURES = {"five_prime_utr", "5UTR", "five_prime_UTR"}
_THREE_UTR_FEATURES = {"three_prime_utr", "3UTR", "three_prime_UTR"}


class AnnotationBuilder:
    """
    Build annotatr-style annotation sets for one genome.

    CpG annotations are derived from CpG islands, gene annotations from
    transcript/exon/UTR records of a gene model table (GTF), enhancers from a
    BED file of FANTOM5 enhancers.
    """

    def __init__(
        self,
        genome: str,
        chrom_sizes: Union[Mapping[str, int], pd.Series],
        config: Optional[Any] = None
    ):
        """
        Initialize annotation builder.

        Args:
            genome: Genome identifier ("hg38", "mm10" or "rn6")
            chrom_sizes: Mapping of chromosome name -> length
            config: Configuration object with ``annotation_params``
        """
        self.genome = validate_genome(genome)
        self.chrom_sizes = pd.Series(dict(chrom_sizes), dtype=np.int64)
        self.params = {
            "promoter_upstream": 1000,
            "promoter_downstream": 0,
            "onetofivekb_upstream": 5000,
            "boundary_width": 200,
            "shore_width": 2000,
            "shelf_width": 2000,
        }
        if config is not None and hasattr(config, "annotation_params"):
            self.params.update(config.annotation_params)

    def type_name(self, category: str) -> str:
        return f"{self.genome}_{category}"

    def _finalize(self, df: pd.DataFrame, category: str) -> pd.DataFrame:
        """Clip, sort and label a category's intervals."""
        out = clip_to_genome(df, self.chrom_sizes)
        out = out.sort_values(["Chromosome", "Start", "End"], kind="mergesort").reset_index(drop=True)

        for col in ("strand", "tx_id", "gene_id", "symbol"):
            if col not in out.columns:
                out[col] = "*" if col == "strand" else np.nan
        out["id"] = [f"{_ID_PREFIX[category]}:{i + 1}" for i in range(len(out))]
        out["type"] = self.type_name(category)
        return out[ANNOTATION_COLS]

    # CpG context

    def build_cpg_annotations(self, cpg_islands: pd.DataFrame) -> pd.DataFrame:
        """
        Build CpG islands, shores, shelves and inter-CGI annotations.

        Shores extend up to ``shore_width`` either side of islands, shelves
        ``shelf_width`` beyond shores; each excludes the categories inside it.
        The remaining genome is inter-CGI.

        Args:
            cpg_islands: Region table of CpG islands

        Returns:
            Annotation table of the four CpG categories
        """
        logger.info(f"Building CpG annotations for {self.genome}")
        islands = merge_intervals(clip_to_genome(cpg_islands[COORD_COLS], self.chrom_sizes))

        shores = self._flanks(islands, self.params["shore_width"])
        shores = merge_intervals(subtract_intervals(shores, islands))

        shelves = self._flanks(shores, self.params["shelf_width"])
        shelves = subtract_intervals(subtract_intervals(shelves, islands), shores)
        shelves = merge_intervals(shelves)

        covered = pd.concat([islands, shores, shelves], ignore_index=True)
        inter = complement(covered, self.chrom_sizes)

        annotations = pd.concat([
            self._finalize(islands, "cpg_islands"),
            self._finalize(shores, "cpg_shores"),
            self._finalize(shelves, "cpg_shelves"),
            self._finalize(inter, "cpg_inter"),
        ], ignore_index=True)

        logger.info(f"Built {len(annotations)} CpG annotations "
                    f"({len(islands)} islands, {len(shores)} shores, {len(shelves)} shelves)")
        return annotations

    def _flanks(self, regions: pd.DataFrame, width: int) -> pd.DataFrame:
        """Up- and downstream flanks of ``width`` bases, merged."""
        if regions.empty:
            return pd.DataFrame(columns=COORD_COLS)
        upstream = pd.DataFrame({
            "Chromosome": regions["Chromosome"],
            "Start": regions["Start"] - width,
            "End": regions["Start"]
        })
        downstream = pd.DataFrame({
            "Chromosome": regions["Chromosome"],
            "Start": regions["End"],
            "End": regions["End"] + width
        })
        flanks = clip_to_genome(pd.concat([upstream, downstream], ignore_index=True), self.chrom_sizes)
        return merge_intervals(flanks)

    # Gene context

    def build_gene_annotations(self, gene_models: pd.DataFrame) -> pd.DataFrame:
        """
        Build promoter, 1to5kb, UTR, exon, intron, boundary and intergenic annotations.

        Args:
            gene_models: GTF records with Chromosome, Feature, Start, End,
                Strand/strand, transcript_id and optionally gene_id, gene_name

        Returns:
            Annotation table of the gene categories
        """
        logger.info(f"Building gene region annotations for {self.genome}")
        models = gene_models.rename(columns={"Strand": "strand"})
        if "strand" not in models.columns:
            models["strand"] = "+"
        models = models.rename(columns={"transcript_id": "tx_id", "gene_name": "symbol"})
        for col in ("gene_id", "symbol"):
            if col not in models.columns:
                models[col] = np.nan
        models["Chromosome"] = models["Chromosome"].astype(str)
        models["strand"] = models["strand"].astype(str)

        exons = models[models["Feature"] == "exon"]
        transcripts = self._transcripts(models, exons)
        five_utrs, three_utrs = self._utrs(models)
        introns = self._introns(exons)

        promoters = self._upstream(transcripts, self.params["promoter_upstream"],
                                   self.params["promoter_downstream"])
        onetofivekb = self._upstream(transcripts, self.params["onetofivekb_upstream"],
                                     -self.params["promoter_upstream"])
        boundaries = self._boundaries(introns, self.params["boundary_width"])

        genic = pd.concat([transcripts, promoters, onetofivekb], ignore_index=True)
        intergenic = complement(clip_to_genome(genic[COORD_COLS], self.chrom_sizes), self.chrom_sizes)

        categories = {
            "genes_1to5kb": onetofivekb,
            "genes_promoters": promoters,
            "genes_5UTRs": five_utrs,
            "genes_exons": exons,
            "genes_introns": introns,
            "genes_3UTRs": three_utrs,
            "genes_intronexonboundaries": boundaries,
            "genes_intergenic": intergenic,
        }
        annotations = pd.concat(
            [self._finalize(self._gene_columns(df), name) for name, df in categories.items()],
            ignore_index=True
        )

        logger.info(f"Built {len(annotations)} gene annotations from {len(transcripts)} transcripts")
        return annotations

    @staticmethod
    def _gene_columns(df: pd.DataFrame) -> pd.DataFrame:
        keep = [c for c in COORD_COLS + ["strand", "tx_id", "gene_id", "symbol"] if c in df.columns]
        return df[keep].copy()

    @staticmethod
    def _transcripts(models: pd.DataFrame, exons: pd.DataFrame) -> pd.DataFrame:
        """Transcript records, or exon spans per transcript when the GTF has none."""
        transcripts = models[models["Feature"] == "transcript"]
        if not transcripts.empty:
            return transcripts
        if exons.empty:
            raise ValueError("Gene models contain neither transcript nor exon records")

        return (
            exons.groupby("tx_id", sort=False)
            .agg(Chromosome=("Chromosome", "first"), Start=("Start", "min"),
                 End=("End", "max"), strand=("strand", "first"),
                 gene_id=("gene_id", "first"), symbol=("symbol", "first"))
            .reset_index()
        )

    @staticmethod
    def _utrs(models: pd.DataFrame):
        """Split UTR records into 5' and 3', classifying generic UTRs against the CDS."""
        five = models[models["Feature"].isin(_FIVE_UTR_FEATURES)]
        three = models[models["Feature"].isin(_THREE_UTR_FEATURES)]

        generic = models[models["Feature"] == "UTR"]
        cds = models[models["Feature"] == "CDS"]
        if not generic.empty and not cds.empty:
            cds_span = cds.groupby("tx_id").agg(cds_start=("Start", "min"), cds_end=("End", "max"))
            generic = generic.join(cds_span, on="tx_id", how="inner")
            minus = generic["strand"] == "-"
            upstream_of_cds = np.where(minus, generic["Start"] >= generic["cds_end"],
                                       generic["End"] <= generic["cds_start"])
            five = pd.concat([five, generic[upstream_of_cds]], ignore_index=True)
            three = pd.concat([three, generic[~upstream_of_cds]], ignore_index=True)

        return five, three

    @staticmethod
    def _introns(exons: pd.DataFrame) -> pd.DataFrame:
        """Gaps between consecutive exons of each transcript."""
        if exons.empty:
            return pd.DataFrame(columns=COORD_COLS + ["strand", "tx_id", "gene_id", "symbol"])

        ordered = exons.sort_values(["tx_id", "Start"])
        next_start = ordered.groupby("tx_id")["Start"].shift(-1)
        introns = ordered.assign(Start=ordered["End"], End=next_start)
        introns = introns[introns["End"].notna()]
        introns = introns.assign(End=introns["End"].astype(np.int64))
        return introns[introns["End"] > introns["Start"]].reset_index(drop=True)

    @staticmethod
    def _upstream(transcripts: pd.DataFrame, upstream: int, downstream: int) -> pd.DataFrame:
        """
        Window from ``upstream`` bases before the TSS to ``downstream`` after it.

        A negative ``downstream`` ends the window before the TSS.
        """
        minus = (transcripts["strand"] == "-").to_numpy()
        tss = np.where(minus, transcripts["End"], transcripts["Start"]).astype(np.int64)
        start = np.where(minus, tss - downstream, tss - upstream)
        end = np.where(minus, tss + upstream, tss + downstream)
        return transcripts.assign(Start=start, End=end)

    @staticmethod
    def _boundaries(introns: pd.DataFrame, width: int) -> pd.DataFrame:
        """``width`` bases either side of every intron/exon junction."""
        junctions = pd.concat([
            introns.assign(Start=introns["Start"] - width, End=introns["Start"] + width),
            introns.assign(Start=introns["End"] - width, End=introns["End"] + width),
        ], ignore_index=True)
        return junctions

    # Enhancers

    def build_enhancer_annotations(self, enhancers: pd.DataFrame) -> pd.DataFrame:
        """FANTOM5 enhancer annotations (hg38 and mm10 only)."""
        if self.genome not in ("hg38", "mm10"):
            raise ValueError(f"FANTOM5 enhancers are not available for {self.genome}")
        return self._finalize(enhancers[COORD_COLS].copy(), "enhancers_fantom")

    # Shortcuts

    def expand_names(self, names: Iterable[str]) -> List[str]:
        """Resolve annotatr shortcut names to individual categories."""
        prefix = f"{self.genome}_"
        shortcuts = {
            "cpgs": CPG_CATEGORIES,
            "basicgenes": BASIC_GENE_CATEGORIES,
        }
        known = set(CPG_CATEGORIES + GENE_CATEGORIES + ENHANCER_CATEGORIES)

        categories: List[str] = []
        for name in names:
            if not name.startswith(prefix):
                raise ValueError(f"Annotation '{name}' does not belong to genome {self.genome}")
            short = name[len(prefix):]
            expanded = shortcuts.get(short, [short])
            for category in expanded:
                if category not in known:
                    raise ValueError(f"Unknown annotation '{name}'")
                if category not in categories:
                    categories.append(category)
        return categories

    def build_annotations(
        self,
        names: Iterable[str],
        cpg_islands: Optional[pd.DataFrame] = None,
        gene_models: Optional[pd.DataFrame] = None,
        enhancers: Optional[pd.DataFrame] = None,
        prune: bool = True
    ) -> pd.DataFrame:
        """
        Build the requested annotations.

        Args:
            names: Annotation or shortcut names, e.g. ``hg38_cpgs``,
                ``hg38_basicgenes``, ``hg38_genes_intergenic``
            cpg_islands: CpG islands, needed for CpG categories
            gene_models: GTF records, needed for gene categories
            enhancers: Enhancer regions, needed for ``enhancers_fantom``
            prune: Keep standard chromosomes only

        Returns:
            Annotation table of the requested categories
        """
        categories = self.expand_names(names)
        built: Dict[str, pd.DataFrame] = {}

        if any(c in CPG_CATEGORIES for c in categories):
            if cpg_islands is None:
                raise ValueError("CpG annotations require CpG islands")
            built["cpg"] = self.build_cpg_annotations(cpg_islands)
        if any(c in GENE_CATEGORIES for c in categories):
            if gene_models is None:
                raise ValueError("Gene annotations require gene models")
            built["genes"] = self.build_gene_annotations(gene_models)
        if "enhancers_fantom" in categories:
            if enhancers is None:
                raise ValueError("Enhancer annotations require an enhancer BED file")
            built["enhancers"] = self.build_enhancer_annotations(enhancers)

        wanted = [self.type_name(c) for c in categories]
        annotations = pd.concat(built.values(), ignore_index=True)
        annotations = annotations[annotations["type"].isin(wanted)].reset_index(drop=True)

        if prune:
            annotations = keep_standard_chromosomes(annotations, self.genome)
        return annotations


def load_cpg_islands(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Load CpG islands from a UCSC cpgIslandExt table or a BED file.

    The UCSC table's leading ``bin`` column is detected and skipped.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"CpG island file not found: {path}")

    raw = pd.read_csv(path, sep="\t", header=None, comment="#")
    offset = 1 if pd.api.types.is_integer_dtype(raw[0]) else 0
    islands = pd.DataFrame({
        "Chromosome": raw[offset].astype(str),
        "Start": raw[offset + 1].astype(np.int64),
        "End": raw[offset + 2].astype(np.int64)
    })
    logger.info(f"Loaded {len(islands)} CpG islands from {path.name}")
    return islands


def load_gene_models(file_path: Union[str, Path]) -> pd.DataFrame:
    """Load a GTF file into a table of gene model records."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"GTF file not found: {path}")

    models = pr.read_gtf(str(path)).df
    models["Chromosome"] = models["Chromosome"].astype(str)
    models["Strand"] = models["Strand"].astype(str)
    logger.info(f"Loaded {len(models)} gene model records from {path.name}")
    return models


def load_enhancers(file_path: Union[str, Path]) -> pd.DataFrame:
    """Load enhancer regions from a BED file."""
    return RegionLoader().load(file_path, one_based=False)
