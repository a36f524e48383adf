"""
Install Command

Install the status-updater service on every host of a fleet.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click
import inquirer

from fleetdeploy.base import BaseCommand
from fleetdeploy.constants import DEFAULT_HOSTS_FILE, SIDE_BUNDLE_FILE
from fleetdeploy.core import ConfigLoader, InstallerConfig, discover_packages, load_artifacts, load_hosts
from fleetdeploy.exceptions import ConfigurationError
from fleetdeploy.models.inventory import DeviceClass
from fleetdeploy.services import HostWorker, Orchestrator, SSHTransport, build_strategies
from fleetdeploy.ui_components import show_summary


@dataclass
class InstallOptions:
    """Options for install command."""

    hosts_file: Path
    config_file: Optional[Path] = None
    device_class: Optional[str] = None
    package: Optional[Path] = None
    side_bundle: Optional[bool] = None
    concurrency: Optional[int] = None
    workdir: Path = Path(".")


class InstallCommand(BaseCommand):
    """
    Install a package or embedded bundle across a fleet.

    Features:
    - Credential fallback per device class
    - Buildroot / dpkg host detection
    - Bounded concurrency
    - Per-host failure isolation with a final summary
    """

    def __init__(
        self,
        options: InstallOptions,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.options = options

    def load_config(self) -> InstallerConfig:
        path = self.options.config_file or ConfigLoader().find_config(self.options.workdir)
        return InstallerConfig.load(path)

    def select_device_class(self, config: InstallerConfig) -> DeviceClass:
        """Use --device-class or ask which device family is being installed."""
        if self.options.device_class:
            return config.get_device_class(self.options.device_class)

        classes = list(config.device_classes.values())
        if len(classes) == 1:
            return classes[0]

        questions = [
            inquirer.List(
                "device_class",
                message="Select device type",
                choices=[(device.label, device.name) for device in classes],
                carousel=True,
            )
        ]
        answers = inquirer.prompt(questions, raise_keyboard_interrupt=True)
        if not answers:
            raise ConfigurationError("No device type selected")
        return config.get_device_class(answers["device_class"])

    def select_package(self) -> Path:
        """Use --package or ask which local .deb to install."""
        if self.options.package:
            return self.options.package

        packages = discover_packages(self.options.workdir)
        if not packages:
            raise ConfigurationError(
                "No .deb files found",
                context=f"Place the package in {self.options.workdir.resolve()} or pass --package",
            )

        questions = [
            inquirer.List(
                "package",
                message="Select the .deb file to install",
                choices=[package.name for package in packages],
                carousel=True,
            )
        ]
        answers = inquirer.prompt(questions, raise_keyboard_interrupt=True)
        if not answers:
            raise ConfigurationError("No package selected")
        return self.options.workdir / answers["package"]

    def select_side_bundle(self) -> bool:
        if self.options.side_bundle is not None:
            return self.options.side_bundle

        questions = [
            inquirer.Confirm(
                "side_bundle",
                message="Do you want to install lldpd on all devices?",
                default=False,
            )
        ]
        answers = inquirer.prompt(questions, raise_keyboard_interrupt=True)
        return bool(answers and answers["side_bundle"])

    def execute(self) -> None:
        """Execute install command."""
        config = self.load_config()
        device_class = self.select_device_class(config)
        hosts = load_hosts(self.options.hosts_file)
        package = self.select_package()
        install_side_bundle = self.select_side_bundle()

        artifacts = load_artifacts(
            self.options.workdir,
            package=package,
            side_bundle=self.options.workdir / SIDE_BUNDLE_FILE if install_side_bundle else None,
        )
        concurrency = (
            config.max_concurrency if self.options.concurrency is None else self.options.concurrency
        )

        log_dir = Path(config.log_dir)
        if not log_dir.is_absolute():
            log_dir = self.options.workdir / log_dir
        logger = self.init_logger("install", log_dir=log_dir)

        self.show_header(
            title="Install Fleet",
            details={
                "Device type": device_class.label,
                "Package": package.name,
                "Side bundle": "yes" if install_side_bundle else "no",
                "Hosts": len(hosts),
                "Concurrency": concurrency,
            },
        )

        logger.log(f"Device class: {device_class.name} ({len(device_class.credentials)} credentials)")
        logger.log(f"Artifacts: {artifacts}")

        transport = SSHTransport(
            port=config.port,
            connect_timeout=config.connect_timeout,
            attempts=config.connect_attempts,
            retry_delay=config.retry_delay,
            command_timeout=config.command_timeout,
            logger=logger,
        )
        strategies = build_strategies(
            install_side_bundle=install_side_bundle,
            elevation_mode=config.elevation,
            service_name=config.service_name,
            command_timeout=config.command_timeout,
            logger=logger,
        )
        orchestrator = Orchestrator(
            HostWorker(transport, strategies, logger=logger),
            max_concurrency=concurrency,
            logger=logger,
        )

        logger.step(f"Installing on {len(hosts)} hosts")
        summary = asyncio.run(
            orchestrator.run_batch(hosts, device_class.credentials, artifacts)
        )

        logger.log(
            f"Total hosts: {summary.total}, successful: {summary.succeeded}, failed: {summary.failed}"
        )
        for outcome in summary.failures:
            logger.log(f"Failed host: {outcome.host} ({outcome.failure_reason})", "WARNING")

        if self.json_output:
            self.output_json(summary.to_dict())
            return

        show_summary(summary, console=self.console)
        if summary.failed:
            self.print_warning(f"{summary.failed} of {summary.total} hosts failed")
        else:
            self.print_success(f"Installed on all {summary.total} hosts")
        self.console.print(f"\n[dim]Logs saved to:[/dim] {logger.log_path}\n")


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
@click.option("--device-class", "-d", default=None, help="Device class from config")
@click.option(
    "--package",
    "-p",
    type=click.Path(path_type=Path),
    default=None,
    help=".deb package for package-managed hosts",
)
@click.option(
    "--side-bundle/--no-side-bundle",
    default=None,
    help=f"Install packages from {SIDE_BUNDLE_FILE} first",
)
@click.option("--concurrency", "-c", type=int, default=None, help="Max concurrent hosts")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output summary in JSON format")
def install(
    hosts_file, config_file, device_class, package, side_bundle, concurrency, verbose, json_output
):
    """
    Install the service on every host in the host list

    Each host is tried with the device class credentials in order. Buildroot
    devices get the embedded bundle and an init script; other devices get the
    selected .deb package. Failed hosts are listed in the final summary.

    Examples:
        # Interactive: pick device type, package and side bundle
        fleetdeploy install

        # Non-interactive
        fleetdeploy install -d hc9xx -p status-updater_1.2.0_armhf.deb --no-side-bundle
    """
    options = InstallOptions(
        hosts_file=hosts_file,
        config_file=config_file,
        device_class=device_class,
        package=package,
        side_bundle=side_bundle,
        concurrency=concurrency,
    )
    cmd = InstallCommand(options, verbose=verbose, json_output=json_output)
    cmd.run()
