"""
Plugin Manager for fusioncheck.

Discovers and loads plugins that contribute extra rule catalogs, so new
microarchitecture pairs can be modelled without touching the engine.
"""

import os
import sys
import importlib.util
import inspect
from abc import ABC, abstractmethod
from typing import List, Optional
from pathlib import Path
import logging

from fusioncheck.error_handling import PluginError, create_error
from fusioncheck.rules import RuleCatalog, register_catalog, unregister_catalog

logger = logging.getLogger(__name__)


class CatalogPlugin(ABC):
    """
    Abstract base class for catalog plugins.

    A plugin module defines one subclass; the manager instantiates it and
    registers the catalog it returns.
    """

    @abstractmethod
    def get_name(self) -> str:
        """Return the plugin name."""
        pass

    @abstractmethod
    def get_version(self) -> str:
        """Return the plugin version."""
        pass

    @abstractmethod
    def get_catalog(self) -> RuleCatalog:
        """Return the rule catalog this plugin provides."""
        pass

    def get_description(self) -> str:
        """Return a description of the plugin (optional)."""
        return ""

    def get_author(self) -> str:
        """Return the plugin author (optional)."""
        return ""


class PluginManager:
    """
    Manages catalog plugin discovery and loading.

    Plugins are plain Python files in the plugin directory. Loading a
    plugin registers its catalog under the catalog's name.
    """

    def __init__(self, plugin_dir: str = "plugins"):
        """
        Args:
            plugin_dir: Directory to search for plugins (default: "plugins")
        """
        self.plugin_dir = plugin_dir
        self.plugins: List[CatalogPlugin] = []

        logger.debug(f"PluginManager initialized with plugin directory: {plugin_dir}")

    def discover_plugins(self, plugin_dir: Optional[str] = None) -> List[str]:
        """
        Discover plugin files in the plugin directory.

        Returns:
            Sorted list of plugin file paths
        """
        search_dir = plugin_dir or self.plugin_dir
        plugin_files = []

        if not os.path.exists(search_dir):
            logger.warning(f"Plugin directory does not exist: {search_dir}")
            return plugin_files

        logger.info(f"Discovering plugins in: {search_dir}")

        for root, dirs, files in os.walk(search_dir):
            dirs.sort()
            for file in sorted(files):
                if file.endswith('.py') and not file.startswith('__'):
                    plugin_path = os.path.join(root, file)
                    plugin_files.append(plugin_path)
                    logger.debug(f"Discovered plugin file: {plugin_path}")

        logger.info(f"Discovered {len(plugin_files)} plugin file(s)")
        return plugin_files

    def load_plugin(self, plugin_path: str) -> CatalogPlugin:
        """
        Load a plugin from a file path and register its catalog.

        Raises:
            PluginError: If the file cannot be imported, defines no
                CatalogPlugin subclass, or returns an invalid catalog
        """
        logger.info(f"Loading plugin from: {plugin_path}")
        module_name = f"fusioncheck_plugin_{Path(plugin_path).stem}"

        spec = importlib.util.spec_from_file_location(module_name, plugin_path)
        if spec is None or spec.loader is None:
            raise PluginError(f"Failed to create module spec for: {plugin_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            error = create_error("plugin_load_failed", plugin_name=plugin_path)
            error.original_exception = e
            raise error from e

        plugin_class = None
        for name, obj in inspect.getmembers(module, inspect.isclass):
            if issubclass(obj, CatalogPlugin) and obj is not CatalogPlugin \
                    and not inspect.isabstract(obj):
                plugin_class = obj
                break

        if plugin_class is None:
            raise PluginError(f"No CatalogPlugin subclass found in: {plugin_path}",
                              suggestion="Define a class deriving from fusioncheck.plugins.CatalogPlugin.")

        plugin = plugin_class()
        catalog = plugin.get_catalog()
        if not isinstance(catalog, RuleCatalog):
            raise PluginError(f"Plugin {plugin.get_name()} did not return a RuleCatalog")

        try:
            register_catalog(catalog)
        except ValueError as e:
            raise PluginError(str(e), original_exception=e) from e

        self.plugins.append(plugin)
        logger.info(f"Loaded plugin: {plugin.get_name()} v{plugin.get_version()} "
                    f"(catalog '{catalog.name}')")
        return plugin

    def load_all_plugins(self, plugin_dir: Optional[str] = None) -> int:
        """
        Discover and load all plugins from the plugin directory.

        A plugin that fails to load is logged and skipped.

        Returns:
            Number of successfully loaded plugins
        """
        loaded_count = 0

        for plugin_file in self.discover_plugins(plugin_dir):
            try:
                self.load_plugin(plugin_file)
            except PluginError as e:
                logger.error(f"{e.message}")
                continue
            loaded_count += 1

        logger.info(f"Loaded {loaded_count} plugin(s) successfully")
        return loaded_count

    def get_plugins(self) -> List[CatalogPlugin]:
        return self.plugins

    def get_plugin_by_name(self, name: str) -> Optional[CatalogPlugin]:
        for plugin in self.plugins:
            if plugin.get_name() == name:
                return plugin
        return None

    def unload_plugin(self, plugin: CatalogPlugin) -> bool:
        """
        Unload a plugin and unregister its catalog.

        Returns:
            True if the plugin was loaded, False otherwise
        """
        if plugin not in self.plugins:
            return False
        self.plugins.remove(plugin)
        unregister_catalog(plugin.get_catalog().name)
        logger.info(f"Unloaded plugin: {plugin.get_name()}")
        return True
