"""
Configuration management for Reel.

Provides a hierarchical configuration system with sensible defaults.
Supports both global (~/.config/reel/config.toml) and local (reel.toml)
configurations.
"""
import os
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict, replace


@dataclass
class ReelConfig:
    """
    Reel configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Command-line arguments
    2. Environment variables (REEL_*)
    3. Local config file (./reel.toml or ./.reelrc)
    4. User config file (~/.config/reel/config.toml)
    5. System defaults
    """

    # Input
    records_file: str = field(default="records.json")
    views_file: Optional[str] = field(default=None)  # YAML view definitions
    include_builtins: bool = field(default=True)  # Register the catalog views

    # Resolution
    max_workers: int = field(default=1)  # >1 derives views on a thread pool

    # Display settings
    output_format: str = field(default="table")  # table, json, plain
    color_output: bool = field(default=True)
    page_size: int = field(default=20)

    # Advanced
    log_level: str = field(default="WARNING")

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "ReelConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load (overrides search)

        Returns:
            Merged configuration object
        """
        config = cls()

        # Load user config if exists
        user_config_path = Path.home() / ".config" / "reel" / "config.toml"
        if user_config_path.exists():
            config._merge(cls._load_toml(user_config_path))

        # Load local config if exists (check multiple locations)
        local_paths = [
            Path.cwd() / "reel.toml",
            Path.cwd() / ".reelrc",
            Path.cwd() / ".reel" / "config.toml"
        ]

        for path in local_paths:
            if path.exists():
                config._merge(cls._load_toml(path))
                break

        # Load specific config file if provided
        if config_file and config_file.exists():
            config._merge(cls._load_toml(config_file))

        # Apply environment variables (REEL_* prefix)
        config._apply_env_vars()

        # Expand paths
        config._expand_paths()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        """Load TOML configuration file."""
        with open(path, "rb") as f:
            return tomli.load(f)

    def _merge(self, data: Dict[str, Any]):
        """Merge configuration data into this instance."""
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def _apply_env_vars(self):
        """Apply environment variables with REEL_ prefix."""
        prefix = "REEL_"
        for key, value in os.environ.items():
            if key.startswith(prefix):
                config_key = key[len(prefix):].lower()
                if hasattr(self, config_key):
                    # Convert string values to appropriate types
                    current_value = getattr(self, config_key)
                    if isinstance(current_value, bool):
                        setattr(self, config_key, value.lower() in ("true", "1", "yes"))
                    elif isinstance(current_value, int):
                        setattr(self, config_key, int(value))
                    else:
                        setattr(self, config_key, value)

    def _expand_paths(self):
        """Expand ~ and environment variables in paths."""
        path_fields = ["records_file", "views_file"]
        for field_name in path_fields:
            value = getattr(self, field_name)
            if isinstance(value, str):
                expanded = os.path.expanduser(os.path.expandvars(value))
                setattr(self, field_name, expanded)

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to TOML file.

        Args:
            path: Path to save to (defaults to user config)
        """
        if path is None:
            path = Path.home() / ".config" / "reel" / "config.toml"

        path.parent.mkdir(parents=True, exist_ok=True)

        # TOML has no null; unset options are left out
        data = {k: v for k, v in asdict(self).items() if v is not None}
        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def build_registry(self):
        """Create the view registry this configuration describes."""
        from reel.views.registry import ViewRegistry

        registry = ViewRegistry(include_builtins=self.include_builtins)
        if self.views_file:
            registry.load_file(self.views_file)
        return registry


# Global configuration instance
_config: Optional[ReelConfig] = None


def get_config(reload: bool = False, config_file: Optional[Path] = None) -> ReelConfig:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from files
        config_file: Specific config file to load

    Returns:
        Global configuration instance
    """
    global _config
    if _config is None or reload:
        _config = ReelConfig.load(config_file)
    return _config


def init_config(config_file: Optional[Path] = None, **kwargs) -> ReelConfig:
    """
    Initialize configuration with command-line overrides.

    Returns a new instance. An explicit config file is loaded fresh and
    overrides are applied to a copy, so the shared instance returned by
    get_config() is never changed.

    Args:
        config_file: Specific config file to load
        **kwargs: Configuration overrides (None values are ignored)

    Returns:
        Configured instance
    """
    if config_file is not None:
        base = ReelConfig.load(config_file)
    else:
        base = get_config()

    known = asdict(base)
    overrides = {
        key: value for key, value in kwargs.items()
        if key in known and value is not None
    }
    return replace(base, **overrides)
