"""
Base data loader class providing common functionality.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

TAB_SUFFIXES = {".tsv", ".txt", ".bed", ".sizes", ".tab"}


class DataLoader(ABC):
    """
    Abstract base class for data loaders.

    Provides common interface for loading the tabular inputs of the
    exploratory analysis (smoothed methylation, sample sheets, region sets).
    """

    def __init__(self, config: Optional[Any] = None):
        """
        Initialize data loader with configuration.

        Args:
            config: Configuration object with ``base_dir`` (optional)
        """
        self.config = config
        self._cache: Dict[str, pd.DataFrame] = {}

    @abstractmethod
    def load(self, file_path: Union[str, Path], **kwargs) -> Any:
        """
        Load data from file.

        Args:
            file_path: Path to data file
            **kwargs: Additional loading parameters

        Returns:
            Loaded data
        """
        pass

    def _resolve_path(self, file_path: Union[str, Path]) -> Path:
        """Resolve file path relative to base directory if not absolute."""
        path = Path(file_path)
        if not path.is_absolute() and self.config is not None:
            path = self.config.base_dir / path
        return path

    def _validate_file(self, file_path: Path) -> None:
        """Validate that file exists and is readable."""
        if not file_path.exists():
            raise FileNotFoundError(f"Data file not found: {file_path}")
        if not file_path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

    def _read_table(self, path: Path, **kwargs) -> pd.DataFrame:
        """Read a delimited table, tab-separated for BED-like suffixes."""
        suffixes = [s.lower() for s in path.suffixes if s.lower() != ".gz"]
        sep = "\t" if suffixes and suffixes[-1] in TAB_SUFFIXES else ","

        cache_key = f"{path}:{sorted(kwargs.items())}"
        if cache_key in self._cache:
            logger.debug(f"Loading from cache: {path.name}")
            return self._cache[cache_key].copy()

        df = pd.read_csv(path, sep=kwargs.pop("sep", sep), **kwargs)
        self._cache[cache_key] = df.copy()
        return df

    def clear_cache(self) -> None:
        """Clear the data cache."""
        self._cache.clear()
        logger.debug("Data cache cleared")
