"""pyscp Python Package

Python library for controlling Yamaha digital mixing consoles over SCP.
"""

from pyscp.catalog import Catalog, CatalogLoadError, load_catalog, load_catalog_for_model
from pyscp.config import ConfigError, ConsoleConfig
from pyscp.console import ScpConsole
from pyscp.listener import ConsoleListener, LoggingListener

__all__ = [
    "Catalog",
    "CatalogLoadError",
    "ConfigError",
    "ConsoleConfig",
    "ConsoleListener",
    "LoggingListener",
    "ScpConsole",
    "load_catalog",
    "load_catalog_for_model",
]
