"""FleetDeploy - Check command"""

from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from fleetdeploy.base import BaseCommand
from fleetdeploy.constants import (
    DEFAULT_HOSTS_FILE,
    EMBEDDED_LOCAL_FILES,
    SIDE_BUNDLE_FILE,
)
from fleetdeploy.core import ConfigLoader, discover_packages, load_artifacts, load_hosts
from fleetdeploy.exceptions import FleetDeployError


class CheckCommand(BaseCommand):
    """Validate local inputs without connecting to any host."""

    def __init__(
        self,
        hosts_file: Path,
        config_file: Optional[Path] = None,
        workdir: Path = Path("."),
        verbose: bool = False,
    ):
        super().__init__(verbose=verbose)
        self.hosts_file = hosts_file
        self.config_file = config_file
        self.workdir = workdir
        self.failed = False
        self.table = Table(title="Installer Inputs", title_justify="left", padding=(0, 1))
        self.table.add_column("Check", style="cyan", no_wrap=True)
        self.table.add_column("Status")
        self.table.add_column("Details", style="dim")

    def _ok(self, check: str, details: str = "") -> None:
        self.table.add_row(f"✅ {check}", "[green]OK[/green]", details)

    def _missing(self, check: str, details: str = "", fatal: bool = True) -> None:
        if fatal:
            self.failed = True
            self.table.add_row(f"❌ {check}", "[red]Missing[/red]", details)
        else:
            self.table.add_row(f"⚠️  {check}", "[yellow]Missing[/yellow]", details)

    def check_config(self) -> None:
        loader = ConfigLoader()
        try:
            path = self.config_file or loader.find_config(self.workdir)
            config = loader.load(path)
        except FleetDeployError as e:
            self._missing("Config", e.format_message())
            return

        classes = ", ".join(
            f"{device.name} ({len(device.credentials)})"
            for device in config.device_classes.values()
        )
        self._ok("Config", f"{path} - device classes: {classes}")

    def check_hosts(self) -> None:
        try:
            hosts = load_hosts(self.hosts_file)
        except FleetDeployError as e:
            self._missing("Host list", e.message)
            return

        if hosts:
            self._ok("Host list", f"{len(hosts)} hosts in {self.hosts_file}")
        else:
            self._missing("Host list", f"{self.hosts_file} has no addresses")

    def check_artifacts(self) -> None:
        artifacts = load_artifacts(self.workdir)
        for role, filename in EMBEDDED_LOCAL_FILES.items():
            if role in artifacts:
                self._ok(filename, f"{artifacts[role].size} bytes -> {artifacts[role].remote_path}")
            else:
                self._missing(filename, "required for Buildroot hosts", fatal=False)

        packages = discover_packages(self.workdir)
        if packages:
            self._ok("Packages", ", ".join(package.name for package in packages))
        else:
            self._missing("Packages", "no .deb files found")

        if (self.workdir / SIDE_BUNDLE_FILE).is_file():
            self._ok(SIDE_BUNDLE_FILE)
        else:
            self._missing(SIDE_BUNDLE_FILE, "only needed with --side-bundle", fatal=False)

    def execute(self) -> None:
        """Execute check command."""
        self.show_header(title="Check Inputs")
        self.check_config()
        self.check_hosts()
        self.check_artifacts()

        self.console.print(self.table)
        self.console.print()

        if self.failed:
            self.exit_with_error("Some inputs are missing or invalid")
        self.print_success("Ready to install")


@click.command()
@click.option(
    "--hosts",
    "hosts_file",
    type=click.Path(path_type=Path),
    default=DEFAULT_HOSTS_FILE,
    show_default=True,
    help="Host list, one address per line",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Config file (default: config.yml or config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def check(hosts_file, config_file, verbose):
    """
    Check config, host list and artifacts without connecting to any host

    Examples:
        fleetdeploy check
        fleetdeploy check --hosts staging-hosts --config staging.yml
    """
    cmd = CheckCommand(hosts_file, config_file=config_file, verbose=verbose)
    cmd.run()
