"""
Plugin system for fusioncheck.

Plugins contribute additional rule catalogs for other microarchitectures.
"""

from .plugin_manager import PluginManager, CatalogPlugin

__all__ = ['PluginManager', 'CatalogPlugin']
