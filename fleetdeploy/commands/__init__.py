"""FleetDeploy CLI commands."""
