"""
Plugin Management CLI

Command-line interface for inspecting how a set of plugin manifests loads.
Shows the final load order, failed plugins, observers and per-plugin details.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from plugin_manager.config import PluginManagerConfig
from plugin_manager.exceptions import PluginError
from plugin_manager.plugin_loader import discover_manifests
from plugin_manager.plugin_manager import PluginManager


class PluginManagerCLI:
    """Command-line interface for plugin management."""

    def __init__(self, core_dirs: List[str], user_dirs: List[str], environment: Optional[str] = None):
        config = PluginManagerConfig(environment=environment) if environment else PluginManagerConfig()
        self.core_dirs = core_dirs
        self.user_dirs = user_dirs
        self.plugin_manager = PluginManager(config=config)

    def initialize(self):
        """Discover manifests and load them."""
        core = discover_manifests(self.core_dirs)
        user = discover_manifests(self.user_dirs)
        self.plugin_manager.load_plugins(core=core, user=user)

    def show_order(self):
        """List registered plugins in load order."""
        plugins = self.plugin_manager.all_plugins

        if not plugins:
            print("No plugins loaded.")
            return

        user_names = {p.name for p in self.plugin_manager.user_plugins}
        print("\nLoad Order:")
        print("-" * 60)
        print(f"{'#':<4} {'Name':<24} {'Version':<12} {'Source':<8}")
        print("-" * 60)

        for index, plugin in enumerate(plugins, start=1):
            source = "user" if plugin.name in user_names else "core"
            print(f"{index:<4} {plugin.name:<24} {plugin.version:<12} {source:<8}")

        print("-" * 60)

    def show_plugin_info(self, plugin_name: str):
        """Show detailed information about a plugin."""
        info = self.plugin_manager.get_plugin_info(plugin_name)

        if not info:
            status = self.plugin_manager.get_status(plugin_name)
            if status:
                print(f"Plugin '{plugin_name}' is {status.value}.")
            else:
                print(f"Plugin '{plugin_name}' not found.")
            return

        dependencies = [f"{name} {constraint}" for name, constraint in info['dependencies'].items()]
        print(f"\nPlugin Information: {plugin_name}")
        print("=" * 50)
        print(f"Name: {info['name']}")
        print(f"Version: {info['version']}")
        print(f"Status: {info['status']}")
        print(f"Source: {'user' if info['user_plugin'] else 'core'}")
        print(f"Dependencies: {', '.join(dependencies) if dependencies else 'None'}")
        print(f"Dependents: {', '.join(info['dependents']) if info['dependents'] else 'None'}")
        print(f"Load Before: {', '.join(info['load_before']) if info['load_before'] else 'None'}")
        print(f"Load After: {', '.join(info['load_after']) if info['load_after'] else 'None'}")
        print(f"Evicts: {', '.join(info['evicts']) if info['evicts'] else 'None'}")
        print(f"Observes: {', '.join(info['observes']) if info['observes'] else 'None'}")
        print(f"Observers: {', '.join(info['observers']) if info['observers'] else 'None'}")

        if info['unresolved']:
            print(f"\nUnresolved: {', '.join(info['unresolved'])}")

    def show_failed(self):
        """List plugins whose dependencies never resolved."""
        failed = self.plugin_manager.failed_plugins

        if not failed:
            print("No failed plugins.")
            return

        print("\nFailed Plugins:")
        print("-" * 60)
        for name in sorted(failed):
            reasons = self.plugin_manager.registry.get_failure_reasons(name)
            print(f"{name:<24} {', '.join(str(r) for r in reasons) or 'load order could not be satisfied'}")
        print("-" * 60)

    def show_observers(self, plugin_name: str):
        """List the plugins observing a plugin."""
        plugin = self.plugin_manager.get_plugin(plugin_name)
        if not plugin:
            print(f"Plugin '{plugin_name}' not found.")
            return

        observers = sorted(o.name for o in self.plugin_manager.get_plugin_observers(plugin))
        if observers:
            print(f"Observers of '{plugin_name}': {', '.join(observers)}")
        else:
            print(f"Plugin '{plugin_name}' has no observers.")

    def show_status(self):
        """Show overall load status."""
        manager = self.plugin_manager
        result = manager.last_result
        evicted = manager.registry.evicted

        print("\nPlugin Status")
        print("=" * 50)
        print(f"Environment: {manager.environment}")
        print(f"Loaded Plugins: {len(manager.all_plugins)}")
        print(f"User Plugins: {len(manager.user_plugins)}")
        print(f"Failed Plugins: {len(manager.failed_plugins)}")
        print(f"Evicted Plugins: {len(evicted)}")
        if result is not None:
            print(f"Skipped Plugins: {len(result.skipped)}")
            print(f"Retry Iterations: {result.iterations}")

        if evicted:
            print(f"\nEvicted: {', '.join(f'{victim} (by {evictor})' for victim, evictor in evicted.items())}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv()
    log_level = os.getenv('LOG_LEVEL', 'WARNING').upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description="Plugin Load Order Manager")
    parser.add_argument('--core', action='append', default=[], metavar='DIR',
                        help='Directory or manifest of core plugins (repeatable)')
    parser.add_argument('--user', action='append', default=[], metavar='DIR',
                        help='Directory or manifest of user plugins (repeatable)')
    parser.add_argument('--env', help='Runtime environment (overrides PLUGINS_ENVIRONMENT)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('order', help='Show the final load order')

    info_parser = subparsers.add_parser('info', help='Show plugin information')
    info_parser.add_argument('plugin', help='Plugin name')

    subparsers.add_parser('failed', help='List failed plugins')

    observers_parser = subparsers.add_parser('observers', help='List observers of a plugin')
    observers_parser.add_argument('plugin', help='Plugin name')

    subparsers.add_parser('status', help='Show load status')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        cli = PluginManagerCLI(args.core, args.user, args.env)
        cli.initialize()

        if args.command == 'order':
            cli.show_order()
        elif args.command == 'info':
            cli.show_plugin_info(args.plugin)
        elif args.command == 'failed':
            cli.show_failed()
        elif args.command == 'observers':
            cli.show_observers(args.plugin)
        elif args.command == 'status':
            cli.show_status()
    except PluginError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
