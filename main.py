#!/usr/bin/env python3
"""
DMR Exploratory Analysis

Main entry point for the exploratory plots of a DMR analysis: PCA of
smoothed methylation over 20 kb windows and CpG islands, a density plot of
group methylation, and CpG / gene context proportions of the DMRs.

Usage:
    python main.py --genome hg38 --methylation smoothed.csv --sample-sheet samples.csv
    python main.py ... --sig-regions sigDMRs.csv --regions backgroundRegions.csv
    python main.py ... --skip-pca --skip-density      # Annotation plots only
    python main.py ... --save-annotations             # Also write BED files for GAT

Examples:
    # Full run with annotation sources given on the command line
    python main.py --genome mm10 \\
        --methylation data/smoothed.csv --sample-sheet data/sample_info.csv \\
        --sig-regions data/sigDMRs.csv --regions data/backgroundRegions.csv \\
        --chrom-sizes data/mm10.chrom.sizes --cpg-islands data/cpgIslandExt.txt \\
        --genes data/mm10.ncbiRefSeq.gtf --enhancers data/mm10_fantom.bed

    # Annotation sources taken from configs/genomes/hg38.yaml
    python main.py --genome hg38 --methylation smoothed.csv --skip-annotation
"""

import argparse
import logging
import sys
from typing import Any, Callable, Dict, Optional

from dmr_explore.annotation import (
    annotate_cpgs,
    annotate_genic,
    build_genome_annotations,
    load_cpg_islands,
    load_enhancers,
    load_gene_models,
)
from dmr_explore.data_loaders import (
    RegionLoader,
    SampleSheetLoader,
    SmoothedMethylationLoader,
    load_chrom_sizes,
)
from dmr_explore.exploratory import cgi_pca, density_plot, windows_pca
from dmr_explore.preprocessing import SUPPORTED_GENOMES
from dmr_explore.utils.config import load_config
from dmr_explore.utils.logging_utils import set_level, setup_logger

# Setup logger
logger = setup_logger("dmr_explore", level=logging.INFO)


def run_step(name: str, step: Callable[[], Any]) -> bool:
    """
    Run one analysis step, logging failures instead of aborting.

    Args:
        name: Step name for log messages
        step: Callable running the step

    Returns:
        True if successful, False otherwise
    """
    try:
        step()
        logger.info(f"{name} completed.")
        return True

    except FileNotFoundError as e:
        logger.error(f"{name} failed, missing input: {e}")
        return False

    except Exception as e:
        logger.error(f"{name} failed: {e}")
        import traceback
        logger.debug(traceback.format_exc())
        return False


def load_sources(args: argparse.Namespace, config) -> Dict[str, Any]:
    """Read annotation sources given on the command line, falling back to config."""
    sources: Dict[str, Any] = {}

    chrom_sizes = args.chrom_sizes or config.get_data_path("chrom_sizes")
    if chrom_sizes is None:
        raise ValueError("Chromosome sizes are required (--chrom-sizes or genome.files.chrom_sizes)")
    sources["chrom_sizes"] = load_chrom_sizes(chrom_sizes)

    if args.cpg_islands:
        sources["cpg_islands"] = load_cpg_islands(args.cpg_islands)
    if args.genes:
        sources["gene_models"] = load_gene_models(args.genes)
    if args.enhancers:
        sources["enhancers"] = load_enhancers(args.enhancers)

    return sources


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="DMR Exploratory Analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "--genome",
        default="hg38",
        choices=list(SUPPORTED_GENOMES),
        help="Reference genome (default: hg38)"
    )
    parser.add_argument(
        "--methylation",
        help="Smoothed methylation table (chr, pos, one column per sample)"
    )
    parser.add_argument(
        "--sample-sheet",
        help="Sample sheet CSV/TSV with one row per sample"
    )
    parser.add_argument(
        "--group-col",
        help="Sample sheet column holding the test covariate (default from config)"
    )
    parser.add_argument(
        "--sig-regions",
        help="Significant DMRs (CSV/TSV or BED)"
    )
    parser.add_argument(
        "--regions",
        help="Background regions tested for differential methylation"
    )
    parser.add_argument("--chrom-sizes", help="UCSC chrom.sizes file")
    parser.add_argument("--cpg-islands", help="UCSC cpgIslandExt table or BED of CpG islands")
    parser.add_argument("--genes", help="Gene models GTF")
    parser.add_argument("--enhancers", help="FANTOM5 enhancers BED (hg38/mm10)")
    parser.add_argument(
        "--save-annotations",
        action="store_true",
        help="Write annotation BED files for GAT"
    )
    parser.add_argument(
        "--skip-pca",
        action="store_true",
        help="Skip windows and CpG island PCA"
    )
    parser.add_argument(
        "--skip-density",
        action="store_true",
        help="Skip the density plot"
    )
    parser.add_argument(
        "--skip-annotation",
        action="store_true",
        help="Skip CpG and genic annotation plots"
    )
    parser.add_argument(
        "--config",
        help="Path to custom configuration file"
    )
    parser.add_argument(
        "--log-file",
        help="Also write the log to this file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    if args.log_file:
        setup_logger("dmr_explore", level=logging.INFO, log_file=args.log_file)
    if args.verbose:
        set_level(logger, logging.DEBUG)

    logger.info("=" * 60)
    logger.info("DMR Exploratory Analysis")
    logger.info("=" * 60)
    logger.info(f"Genome: {args.genome}")

    config = load_config(config_file=args.config, genome=args.genome)
    if args.group_col:
        config.analysis_params["test_covariate"] = args.group_col
    config.ensure_output_dirs()

    try:
        sources = load_sources(args, config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load annotation sources: {e}")
        return 1

    success = True
    genome = args.genome

    # Exploratory plots
    data = None
    if not (args.skip_pca and args.skip_density):
        if not args.methylation:
            logger.error("--methylation is required for PCA and density plots")
            return 1

        sample_info: Optional[Any] = None
        try:
            if args.sample_sheet:
                sample_info = SampleSheetLoader(config).load(
                    args.sample_sheet, sample_col=config.analysis_params["sample_col"]
                )
            data = SmoothedMethylationLoader(config).load(args.methylation, sample_info=sample_info)
        except (FileNotFoundError, KeyError, ValueError) as e:
            logger.error(f"Could not load methylation data: {e}")
            return 1

    if not args.skip_pca:
        logger.info("")
        logger.info("[Step 1] PCA of 20 Kb windows")
        logger.info("-" * 40)
        success &= run_step("Windows PCA", lambda: windows_pca(
            data, sources["chrom_sizes"], genome=genome, config=config,
            output_path=config.get_output_path("windows_PCA.pdf")
        ))

        logger.info("")
        logger.info("[Step 2] PCA of CpG islands")
        logger.info("-" * 40)
        success &= run_step("CpG island PCA", lambda: cgi_pca(
            data, genome, config=config,
            annotations=build_genome_annotations(
                genome, [f"{genome}_cpg_islands"], config,
                chrom_sizes=sources["chrom_sizes"], cpg_islands=sources.get("cpg_islands")
            ),
            output_path=config.get_output_path("CpG_island_PCA.pdf")
        ))

    if not args.skip_density:
        logger.info("")
        logger.info("[Step 3] Density plot")
        logger.info("-" * 40)
        success &= run_step("Density plot", lambda: density_plot(
            data, sources["chrom_sizes"], genome=genome, config=config,
            output_path=config.get_output_path("Smoothed_Methylation_Density.pdf")
        ))

    # Annotation plots
    if not args.skip_annotation:
        if not (args.sig_regions and args.regions):
            logger.error("--sig-regions and --regions are required for annotation plots")
            return 1

        region_loader = RegionLoader(config)
        try:
            sig_regions = region_loader.load(args.sig_regions)
            regions = region_loader.load(args.regions)
        except (FileNotFoundError, KeyError, ValueError) as e:
            logger.error(f"Could not load regions: {e}")
            return 1

        logger.info("")
        logger.info("[Step 4] CpG annotations")
        logger.info("-" * 40)
        success &= run_step("CpG annotation", lambda: annotate_cpgs(
            sig_regions, regions, genome,
            save_annotations=args.save_annotations, config=config,
            output_path=config.get_output_path("CpG_annotations.pdf"),
            chrom_sizes=sources["chrom_sizes"], cpg_islands=sources.get("cpg_islands")
        ))

        logger.info("")
        logger.info("[Step 5] Gene region annotations")
        logger.info("-" * 40)
        success &= run_step("Genic annotation", lambda: annotate_genic(
            sig_regions, regions, genome,
            save_annotations=args.save_annotations, config=config,
            output_path=config.get_output_path("generegion_annotations.pdf"),
            chrom_sizes=sources["chrom_sizes"], gene_models=sources.get("gene_models"),
            enhancers=sources.get("enhancers")
        ))

    # Summary
    logger.info("")
    logger.info("=" * 60)
    if success:
        logger.info("Analysis completed successfully!")
    else:
        logger.warning("Analysis completed with some errors.")
    logger.info("=" * 60)

    logger.info(f"Results saved to: {config.output_dir}")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
