"""
resource-loader: asynchronous, cache-backed loading of remote resources
as data URIs.
"""

from resource_loader.cache import CacheHandle
from resource_loader.config import LoaderConfig
from resource_loader.loader import LoadListener, Loader, load_resource

__version__ = "0.2.0"
__author__ = "resource-loader contributors"

# Package metadata
__title__ = "resource-loader"
__description__ = "Cache-backed loading of remote resources as data URIs"

__license__ = "MIT"

# Version tuple for programmatic access (major, minor, patch)
VERSION = (0, 2, 0)

__all__ = [
    "__version__",
    "__author__",
    "VERSION",
    # Configuration
    "LoaderConfig",
    # Loading
    "Loader",
    "LoadListener",
    "load_resource",
    "CacheHandle",
    # Note: cache backends live in resource_loader.cache
]
