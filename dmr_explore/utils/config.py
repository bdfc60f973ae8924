"""
Configuration management for the DMR exploration package.

Supports loading configurations from YAML files for:
- Genome annotation source files
- Window / annotation parameters
- Output locations
- Visualization settings
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)


class Config:
    """
    Central configuration class for DMR exploratory analysis.

    Genome annotation source files are read from ``configs/genomes/<genome>.yaml``
    and can be overridden by a user YAML file.

    Attributes:
        base_dir: Directory that relative paths are resolved against
        output_dir: Directory for results and figures
        extra_dir: Directory for BED exports used by external enrichment tools
        genome: Current genome configuration (annotation source ``files``)
        analysis_params: Window and PCA parameters
        annotation_params: Flank widths used to build annotations
        viz_params: Visualization settings
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        genome: str = "hg38",
        base_dir: Optional[Union[str, Path]] = None
    ):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML config file. If None, uses defaults.
            genome: Genome identifier (e.g., "hg38", "mm10", "rn6")
            base_dir: Root for relative paths (default: current directory)
        """
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.genome_name = genome

        self._init_defaults()
        self._load_genome_config(genome)

        # Override with config file if provided
        if config_file:
            self._load_yaml(config_file)

    def _init_defaults(self):
        """Initialize default configuration values."""
        # Directories
        self.output_dir = self.base_dir / "results"
        self.figures_dir = self.output_dir / "plots"
        self.tables_dir = self.output_dir / "tables"
        self.extra_dir = self.base_dir / "Extra" / "GAT"

        self.analysis_params = {
            "tile_width": 20000,
            "test_covariate": "group",
            "sample_col": "sample",
            "pca": {
                "scale": True,
                "ellipse_prob": 0.68
            }
        }

        # annotatr widths
        self.annotation_params = {
            "promoter_upstream": 1000,
            "promoter_downstream": 0,
            "onetofivekb_upstream": 5000,
            "boundary_width": 200,
            "shore_width": 2000,
            "shelf_width": 2000
        }

        self.viz_params = {
            "dpi": 300,
            "format": "pdf",
            "figure_sizes": {
                "pca": (8, 7),
                "density": (8, 6),
                "bar": (8, 9)
            },
            "font_sizes": {
                "title": 16,
                "label": 14,
                "tick": 12,
                "legend": 12
            },
            "colors": {}
        }

    def _load_yaml(self, config_file: str):
        """Load configuration from YAML file."""
        config_path = Path(config_file)
        if not config_path.is_absolute():
            config_path = self.base_dir / config_file

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        self._update_from_dict(config_data)

    def _load_genome_config(self, genome: str):
        """Load genome-specific configuration."""
        genome_config_path = self.base_dir / "configs" / "genomes" / f"{genome}.yaml"

        self.genome = self._get_default_genome_config(genome)
        if genome_config_path.exists():
            with open(genome_config_path, 'r') as f:
                overrides = yaml.safe_load(f) or {}
            self._merge_genome(overrides)

    def _get_default_genome_config(self, genome: str) -> Dict[str, Any]:
        """Genome facts (chromosomes, enhancer availability) live in preprocessing.genome."""
        return {"files": {}}

    def _merge_genome(self, genome_dict: Dict[str, Any]):
        unknown = sorted(set(genome_dict) - {"files"})
        if unknown:
            logger.warning(f"Ignoring unsupported genome settings: {', '.join(unknown)}")
        files = genome_dict.get("files", {})
        self.genome["files"].update(files or {})

    def _update_from_dict(self, config_dict: Dict[str, Any]):
        """Update configuration from dictionary."""
        if "genome" in config_dict:
            self._merge_genome(config_dict["genome"])
        if "analysis_params" in config_dict:
            pca = config_dict["analysis_params"].get("pca")
            self.analysis_params.update(config_dict["analysis_params"])
            if pca:
                self.analysis_params["pca"] = {
                    "scale": True, "ellipse_prob": 0.68, **pca
                }
        if "annotation_params" in config_dict:
            self.annotation_params.update(config_dict["annotation_params"])
        if "viz_params" in config_dict:
            self.viz_params.update(config_dict["viz_params"])
        if "output_dir" in config_dict:
            self.output_dir = self.base_dir / config_dict["output_dir"]
            self.figures_dir = self.output_dir / "plots"
            self.tables_dir = self.output_dir / "tables"
        if "extra_dir" in config_dict:
            self.extra_dir = self.base_dir / config_dict["extra_dir"]

    def get_data_path(self, file_key: str) -> Optional[Path]:
        """Get full path for a genome annotation source (None if not configured)."""
        file_name = self.genome.get("files", {}).get(file_key)
        if file_name is None:
            return None
        path = Path(file_name)
        return path if path.is_absolute() else self.base_dir / path

    def get_output_path(self, filename: str, subdir: str = "plots") -> Path:
        """Get output path for results."""
        if subdir == "plots":
            return self.figures_dir / filename
        elif subdir == "tables":
            return self.tables_dir / filename
        elif subdir == "extra":
            return self.extra_dir / filename
        return self.output_dir / subdir / filename

    def ensure_output_dirs(self):
        """Create output directories if they don't exist."""
        self.figures_dir.mkdir(parents=True, exist_ok=True)
        self.tables_dir.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return (
            f"Config(genome='{self.genome_name}', "
            f"base_dir='{self.base_dir}')"
        )


def load_config(
    config_file: Optional[str] = None,
    genome: str = "hg38",
    base_dir: Optional[Union[str, Path]] = None
) -> Config:
    """
    Load configuration for the exploratory analysis.

    Args:
        config_file: Path to custom YAML configuration file
        genome: Genome identifier
        base_dir: Root for relative paths

    Returns:
        Config object with all settings loaded

    Example:
        >>> config = load_config(genome="mm10")
        >>> config.analysis_params["tile_width"]
        20000
    """
    return Config(config_file=config_file, genome=genome, base_dir=base_dir)
