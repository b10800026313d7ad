"""
Configuration schema and loading for factory discovery runs.

Configs are YAML files validated with Pydantic. The RPC endpoint may be given
inline or through an environment variable (optionally populated from a .env
file), so that keyed endpoints stay out of committed configs.
"""

import os
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .signatures import FactoryVariant

DEFAULT_STEP = 100_000


class DiscoveryConfig(BaseModel):
    """Factory discovery run configuration"""

    rpc_url: Optional[str] = Field(default=None, description="HTTP(S) RPC endpoint")
    rpc_url_env: str = Field(
        default="RPC_URL", description="Environment variable holding the RPC URL"
    )
    variants: List[str] = Field(
        default_factory=lambda: [v.value for v in FactoryVariant],
        min_length=1,
        description="Factory templates to discover",
    )
    threshold: int = Field(
        default=0, ge=0, description="Minimum creation events after the first"
    )
    step: int = Field(default=DEFAULT_STEP, gt=0, description="Blocks per log query")
    request_timeout: float = Field(
        default=30, gt=0, description="RPC request timeout in seconds"
    )
    output: Optional[Path] = Field(
        default=None, description="Optional JSON file for discovered factories"
    )
    metrics_file: Optional[Path] = Field(
        default=None, description="Optional file for the run's Prometheus metrics"
    )

    @field_validator("variants")
    @classmethod
    def validate_variants(cls, v):
        """Normalise variant names and reject unknown ones"""
        try:
            return [FactoryVariant.from_name(name).value for name in v]
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

    def factory_variants(self) -> List[FactoryVariant]:
        return [FactoryVariant(name) for name in self.variants]

    def resolve_rpc_url(self) -> str:
        """
        Get the RPC URL from the config, falling back to the environment.

        Raises:
            ConfigurationError: If neither source provides a URL
        """
        rpc_url = self.rpc_url or os.getenv(self.rpc_url_env)
        if not rpc_url:
            raise ConfigurationError(
                f"RPC URL not configured: set rpc_url or the "
                f"{self.rpc_url_env} environment variable",
                {"rpc_url_env": self.rpc_url_env},
            )
        return rpc_url


def validate_discovery_config(config_dict: dict) -> DiscoveryConfig:
    """
    Validate a discovery configuration dictionary.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return DiscoveryConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid discovery config: {e}") from e


def load_config(config_path: Union[str, Path]) -> DiscoveryConfig:
    """Load and validate a YAML discovery configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping"
        )

    return validate_discovery_config(config_dict)
