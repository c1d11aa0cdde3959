from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gwsmail import CONFIG_PATH


logger = logging.getLogger(__name__)

CONFIG_ENV = "GWSMAIL_CONFIG"


# =============================================================================
# MailConfig (args/gwsmail.yaml -> mail)
# =============================================================================

class MailSettingsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    default_from: str = Field(default="")
    self_email: str = Field(default="")
    access_token_env: str = Field(default="GWSMAIL_ACCESS_TOKEN")


# =============================================================================
# TrackingConfig (args/gwsmail.yaml -> tracking)
# =============================================================================

class TrackingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=False)
    worker_url: str = Field(default="")
    tracking_key: str = Field(default="")
    admin_key: str = Field(default="")

    def is_configured(self) -> bool:
        return self.enabled and bool(self.worker_url) and bool(self.tracking_key)


class GwsMailConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    mail: MailSettingsConfig = Field(default_factory=MailSettingsConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)


def config_path(path: Optional[Path | str] = None) -> Path:
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)
    return CONFIG_PATH


def load_config(path: Optional[Path | str] = None) -> GwsMailConfig:
    yaml_path = config_path(path)

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return GwsMailConfig.model_validate(raw)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        return GwsMailConfig()


def save_config(config: GwsMailConfig, path: Optional[Path | str] = None) -> Path:
    """Write config as YAML, readable only by the owner (it holds keys)."""
    yaml_path = config_path(path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    with open(yaml_path, "w") as f:
        yaml.safe_dump(config.model_dump(), f, sort_keys=False)
    os.chmod(yaml_path, 0o600)

    return yaml_path


__all__ = [
    "GwsMailConfig",
    "MailSettingsConfig",
    "TrackingConfig",
    "load_config",
    "save_config",
]
