"""
FleetDeploy Core

Configuration and local input loading.
"""

from .config_loader import InstallerConfig, ConfigLoader
from .inventory import load_hosts, parse_hosts, load_artifacts, discover_packages

__all__ = [
    "InstallerConfig",
    "ConfigLoader",
    "load_hosts",
    "parse_hosts",
    "load_artifacts",
    "discover_packages",
]
