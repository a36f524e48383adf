"""fleetdeploy - concurrent installer for device fleets."""

__version__ = "1.0.0"
