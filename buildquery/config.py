"""
Configuration for the target accessor.

Loads from a YAML file or from environment variables.
"""
import os
import yaml
from pathlib import Path
from dataclasses import dataclass


CYCLE_POLICIES = ("ignore", "error")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AccessorConfig:
    """Accessor behaviour settings."""
    package_group_cycles: str = "ignore"  # ignore or error
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.package_group_cycles not in CYCLE_POLICIES:
            raise ValueError(
                f"package_group_cycles must be one of {', '.join(CYCLE_POLICIES)}, "
                f"got '{self.package_group_cycles}'"
            )
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> 'AccessorConfig':
        """
        Load accessor configuration from YAML file.

        Args:
            yaml_path: Path to config file

        Returns:
            AccessorConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If a field is unknown or has an invalid value
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Accessor config not found: {yaml_path}")

        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        unknown_fields = sorted(set(data) - {'package_group_cycles', 'log_level'})
        if unknown_fields:
            raise ValueError(f"Unknown fields in {yaml_path}: {', '.join(unknown_fields)}")

        return cls(**data)

    @classmethod
    def from_env(cls) -> 'AccessorConfig':
        """Load accessor configuration from BUILDQUERY_* environment variables."""
        return cls(
            package_group_cycles=os.getenv("BUILDQUERY_PACKAGE_GROUP_CYCLES", "ignore"),
            log_level=os.getenv("BUILDQUERY_LOG_LEVEL", "WARNING"),
        )
