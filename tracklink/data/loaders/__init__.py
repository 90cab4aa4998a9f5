"""Progressive data loaders."""

from .progressive import ProgressivePathLoader, load_location_data_progressive

__all__ = ["ProgressivePathLoader", "load_location_data_progressive"]
