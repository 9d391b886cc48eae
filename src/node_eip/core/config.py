# src/node_eip/core/config.py

import logging
import os
import re

from dotenv import load_dotenv

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

DEVELOPMENT_NODE_NAME = "node-development-1"
TAINT_EFFECTS = ("NoSchedule", "PreferNoSchedule", "NoExecute")

_INTERVAL_PATTERN = re.compile(r"^(\d+)([smh])$")


def _env_flag(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() in ("true", "1", "t", "y", "yes")


def parse_interval(interval_str: str) -> int:
    """
    Converts a duration string like '10s', '5m' or '1h' into seconds.

    Raises:
        ValueError: If the format is invalid.
    """
    match = _INTERVAL_PATTERN.match(interval_str.lower())
    if not match:
        raise ValueError(f"Invalid interval format: '{interval_str}'. Use 's', 'm', or 'h'.")

    value, unit = int(match.group(1)), match.group(2)
    multipliers = {"s": 1, "m": 60, "h": 3600}
    return value * multipliers[unit]


class Config:
    """
    Handles the agent's configuration by loading values from environment variables.
    """

    def __init__(self):
        # --- AWS credentials (optional, botocore's default chain is used otherwise) ---
        self.AWS_ACCESS_KEY_ID = self._get_secret("AWS_ACCESS_KEY_ID")
        self.AWS_SECRET_ACCESS_KEY = self._get_secret("AWS_SECRET_ACCESS_KEY")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (Kubernetes secret volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/node-eip/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # DEVELOPMENT and NODE_NAME are resolved at access time so the process
    # entry point (and tests) see the current environment.
    @property
    def DEVELOPMENT(self) -> bool:
        return _env_flag("DEVELOPMENT", "false")

    @property
    def NODE_NAME(self) -> str:
        if self.DEVELOPMENT:
            return os.getenv("NODE_NAME", DEVELOPMENT_NODE_NAME)
        return os.getenv("NODE_NAME", "")

    # --- Policy variables ---
    LABEL_DOMAIN = os.getenv("LABEL_DOMAIN", "aws.node.eip")
    RECONCILE_INTERVAL = os.getenv("RECONCILE_INTERVAL", "10s")
    NOT_READY_THRESHOLD = int(os.getenv("NOT_READY_THRESHOLD", "3"))

    # --- Taint variables ---
    TAINT_KEY = os.getenv("TAINT_KEY", f"{LABEL_DOMAIN}/no-eip")
    TAINT_VALUE = os.getenv("TAINT_VALUE", "true")
    TAINT_EFFECT = os.getenv("TAINT_EFFECT", "NoSchedule")

    # --- AWS variables ---
    AWS_REGION = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    METADATA_URL = os.getenv("METADATA_URL", "http://169.254.169.254/latest/meta-data")

    # --- HTTP client variables ---
    DEFAULT_TIMEOUT_CONNECT = float(os.getenv("DEFAULT_TIMEOUT_CONNECT", "2"))
    DEFAULT_TIMEOUT_READ = float(os.getenv("DEFAULT_TIMEOUT_READ", "5"))
    USER_AGENT = os.getenv("USER_AGENT", "node-eip")

    # --- Metrics variables ---
    METRICS_ENABLED = _env_flag("METRICS_ENABLED", "true")
    METRICS_HOST = os.getenv("METRICS_HOST", "0.0.0.0")
    METRICS_PORT = int(os.getenv("METRICS_PORT", "9100"))

    @property
    def RECONCILE_INTERVAL_SECONDS(self) -> int:
        return parse_interval(self.RECONCILE_INTERVAL)

    def require_node_name(self) -> str:
        """
        Returns the node name, failing when it is not set outside development mode.
        """
        node_name = self.NODE_NAME
        if not node_name:
            raise ValueError("environment variable 'NODE_NAME' not set")
        return node_name

    def validate_instance(self):
        parse_interval(self.RECONCILE_INTERVAL)
        if self.TAINT_EFFECT not in TAINT_EFFECTS:
            raise ValueError(f"TAINT_EFFECT must be one of {', '.join(TAINT_EFFECTS)}.")
        if self.NOT_READY_THRESHOLD < 0:
            raise ValueError("NOT_READY_THRESHOLD must not be negative.")
        if not self.AWS_REGION:
            logging.getLogger(__name__).debug("AWS_REGION is not set; relying on botocore's region resolution.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
