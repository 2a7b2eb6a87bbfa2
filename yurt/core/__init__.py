"""Core modules for yurt"""

from .config import Configuration, load_config
from .pacman import LocalDatabase, SyncDatabase

__all__ = ['Configuration', 'load_config', 'LocalDatabase', 'SyncDatabase']
