"""
Configuration for the IMS middleware.

The client, dispatcher and proxy only take constructor arguments. This module
is for embedding applications (and the bundled server) that want to pick the
settings up from a YAML file or the environment.

Configuration priority (highest to lowest):
1. Explicit overrides passed to load_config()
2. Config file (/etc/ims/ims.yaml or config_path)
3. Environment variables
4. Defaults
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .dispatcher import DEFAULT_IMS_URL
from .uaa import uaa_url_for_instance

logger = logging.getLogger(__name__)

# Config file key -> environment variable
ENV_VARS = {
    "predix_zone_id": "PREDIX_ZONE_ID",
    "subtenant_id": "IMS_SUBTENANT_ID",
    "client_id": "UAA_CLIENT_ID",
    "client_secret": "UAA_CLIENT_SECRET",
    "uaa_instance_id": "UAA_INSTANCE_ID",
    "uaa_url": "UAA_URL",
    "ims_url": "IMS_URL",
    "timeout": "IMS_TIMEOUT",
}

REQUIRED_KEYS = ("predix_zone_id", "subtenant_id", "client_id", "client_secret")


@dataclass(frozen=True)
class IMSConfig:
    """
    Settings needed to talk to one IMS tenant.

    Either ``uaa_url`` or ``uaa_instance_id`` must be set; ``uaa_url`` wins
    when both are.
    """
    predix_zone_id: str
    subtenant_id: str
    client_id: str
    client_secret: str
    uaa_instance_id: Optional[str] = None
    uaa_url: Optional[str] = None
    ims_url: str = DEFAULT_IMS_URL
    timeout: float = 30.0

    @property
    def uaa_token_url(self) -> str:
        if self.uaa_url:
            return self.uaa_url
        if self.uaa_instance_id:
            return uaa_url_for_instance(self.uaa_instance_id)
        raise ValueError("Either uaa_url or uaa_instance_id is required")

    @property
    def tenant_headers(self) -> Dict[str, str]:
        return {
            "Predix-Zone-Id": self.predix_zone_id,
            "x-subtenant-id": self.subtenant_id,
            "content-type": "application/json",
        }

    def summary(self) -> Dict[str, Any]:
        """Loggable view of the configuration (no secret)."""
        return {
            "IMS URL": self.ims_url,
            "UAA URL": self.uaa_token_url,
            "Client ID": self.client_id,
            "Predix Zone ID": self.predix_zone_id,
            "Subtenant ID": self.subtenant_id,
        }


def load_config_from_file(config_path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Load IMS configuration from a YAML file.

    Searches in order:
    1. Provided config_path
    2. /etc/ims/ims.yaml (default Kubernetes ConfigMap mount)
    3. /config/ims.yaml
    4. ./ims.yaml

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Dict with the configuration or None if no file found
    """
    search_paths = []

    if config_path:
        search_paths.append(config_path)

    search_paths.extend([
        "/etc/ims/ims.yaml",
        "/config/ims.yaml",
        "./ims.yaml",
    ])

    for path_str in search_paths:
        path = Path(path_str)
        if path.exists() and path.is_file():
            try:
                logger.info(f"Loading IMS config from: {path}")
                with open(path, 'r') as f:
                    config = yaml.safe_load(f) or {}
                logger.info(f"✓ Successfully loaded IMS config from {path}")
                return config
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {path}: {e}")
                continue

    logger.debug("No IMS config file found, will use environment variables")
    return None


def load_client_secret(config: Dict[str, Any]) -> Optional[str]:
    """
    Load the UAA client secret.

    Priority:
    1. client_secret_file in the config file (e.g. a Kubernetes Secret mount)
    2. client_secret in the config file
    3. UAA_CLIENT_SECRET_FILE environment variable
    4. UAA_CLIENT_SECRET environment variable
    """
    secret = _read_secret_file(config.get("client_secret_file")) or config.get("client_secret")
    if secret:
        return secret

    return _read_secret_file(os.getenv("UAA_CLIENT_SECRET_FILE")) or os.getenv(ENV_VARS["client_secret"])


def _read_secret_file(secret_file: Optional[str]) -> Optional[str]:
    if not secret_file:
        return None
    secret_path = Path(secret_file)
    if not secret_path.exists():
        logger.warning(f"Client secret file not found: {secret_file}")
        return None
    logger.info(f"✓ Loaded client secret from: {secret_file}")
    return secret_path.read_text().strip()


def load_config(config_path: Optional[str] = None, **overrides) -> IMSConfig:
    """
    Build an IMSConfig from overrides, a config file and the environment.

    Args:
        config_path: Optional path to a YAML config file
        **overrides: Explicit values for any IMSConfig field

    Returns:
        IMSConfig

    Raises:
        ValueError: If a required setting is missing
    """
    file_config = load_config_from_file(config_path) or {}

    values: Dict[str, Any] = {}
    for key, env_var in ENV_VARS.items():
        value = overrides.get(key)
        if value is None:
            value = file_config.get(key)
        if value is None:
            value = os.getenv(env_var)
        if value is not None and value != "":
            values[key] = value

    if "client_secret" not in overrides or overrides["client_secret"] is None:
        secret = load_client_secret(file_config)
        if secret:
            values["client_secret"] = secret

    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        hints = "\n".join(
            f"  - {key}: '{key}' in /etc/ims/ims.yaml or {ENV_VARS[key]} environment variable"
            for key in missing
        )
        raise ValueError(f"Missing IMS configuration:\n{hints}")

    if not values.get("uaa_url") and not values.get("uaa_instance_id"):
        raise ValueError(
            "UAA location is required. Provide via:\n"
            "  1. 'uaa_url' or 'uaa_instance_id' in the config file\n"
            "  2. UAA_URL or UAA_INSTANCE_ID environment variable"
        )

    if "timeout" in values:
        values["timeout"] = float(values["timeout"])

    return IMSConfig(**values)
