"""
FleetDeploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Default SSH Configuration
DEFAULT_SSH_PORT = 22
SSH_CONNECTION_TIMEOUT = 10
SSH_CONNECT_ATTEMPTS = 3
SSH_RETRY_DELAY = 2
SSH_COMMAND_TIMEOUT = 120

# Batch Configuration
DEFAULT_MAX_CONCURRENCY = 10

# Input Files
DEFAULT_HOSTS_FILE = "iplist"
DEFAULT_CONFIG_FILES = ["config.yml", "config.yaml", "config.json"]
PACKAGE_GLOB = "*.deb"
SIDE_BUNDLE_FILE = "lldpd-packages.zip"

# Deployed Service
DEFAULT_SERVICE_NAME = "status-updater"
STARTUP_JITTER_MAX = 600

# Artifact Roles
ROLE_MAIN_BINARY = "main-binary"
ROLE_TRUST_BUNDLE = "trust-bundle"
ROLE_RUNTIME_CONFIG = "runtime-config"
ROLE_PACKAGE = "package"
ROLE_SIDE_PACKAGE = "side-package"

EMBEDDED_ROLES = [ROLE_MAIN_BINARY, ROLE_TRUST_BUNDLE, ROLE_RUNTIME_CONFIG]

# Local file name -> role for the embedded profile
EMBEDDED_LOCAL_FILES = {
    ROLE_MAIN_BINARY: "status-updater",
    ROLE_TRUST_BUNDLE: "cacert.pem",
    ROLE_RUNTIME_CONFIG: "config",
}

# Remote Paths
EMBEDDED_INSTALL_DIR = "/opt/status-updater"
INIT_SCRIPT_DIR = "/etc/init.d"
REMOTE_TMP_DIR = "/tmp"
OS_RELEASE_PATH = "/etc/os-release"
EMBEDDED_OS_MARKER = "Buildroot"

# Elevation Modes
ELEVATION_STDIN = "stdin"
ELEVATION_NOPASSWD = "nopasswd"
ELEVATION_NONE = "none"
ELEVATION_MODES = [ELEVATION_STDIN, ELEVATION_NOPASSWD, ELEVATION_NONE]

# Legacy config.json layout (username1/password1, username2/password2)
LEGACY_DEVICE_CLASSES = {
    "1": ("hc9xx", "HC9XX device"),
    "2": ("sos", "SOS device"),
}

# Log Configuration
DEFAULT_LOG_DIR = "logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Failure Reasons
REASON_NO_CREDENTIAL = "no credential authenticated"
REASON_VERIFICATION_FAILED = "service verification failed"
