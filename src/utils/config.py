"""
Configuration management for the Recipe Cost Engine.

This module handles:
- Catalog database path configuration
- Logging threshold (minimum severity)
- Engine defaults (expansion depth guard, time scaling policy, cost tolerance)
- Environment-specific configuration (development vs. production)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    COST_TOLERANCE,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_EXPANSION_DEPTH,
    DEFAULT_TIME_POLICY,
    ENV_ENVIRONMENT,
    ENV_LOG_LEVEL,
    ENV_MAX_DEPTH,
    ENV_TIME_POLICY,
    MAX_EXPANSION_DEPTH_LIMIT,
    TIME_POLICIES,
)


class Config:
    """
    Application configuration manager.

    Created once at process start and passed down to the components that
    need it. Explicit constructor arguments win over environment variables,
    which win over the defaults in constants.
    """

    def __init__(
        self,
        environment: str = "production",
        log_level: Optional[str] = None,
        max_expansion_depth: Optional[int] = None,
        time_policy: Optional[str] = None,
        cost_tolerance: float = COST_TOLERANCE,
        database_dir: Optional[Path] = None,
    ):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
            log_level: Minimum log severity name (DEBUG, INFO, WARNING, ERROR)
            max_expansion_depth: Nesting guard for recipe expansion
            time_policy: Default preparation-time scaling policy
            cost_tolerance: Allowed difference between stored and computed effective cost
            database_dir: Directory holding the catalog database file

        Raises:
            ValueError: If any value is out of range
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        level_name = (log_level or os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()
        if level_name == "WARN":
            level_name = "WARNING"
        if not isinstance(logging.getLevelName(level_name), int):
            raise ValueError(f"Unknown log level: {level_name}")
        self._log_level = level_name

        if max_expansion_depth is None:
            max_expansion_depth = int(
                os.environ.get(ENV_MAX_DEPTH, DEFAULT_MAX_EXPANSION_DEPTH)
            )
        if not 0 <= max_expansion_depth <= MAX_EXPANSION_DEPTH_LIMIT:
            raise ValueError(
                f"max_expansion_depth must be between 0 and {MAX_EXPANSION_DEPTH_LIMIT}"
            )
        self._max_expansion_depth = max_expansion_depth

        time_policy = time_policy or os.environ.get(ENV_TIME_POLICY, DEFAULT_TIME_POLICY)
        if time_policy not in TIME_POLICIES:
            raise ValueError(f"Unknown time policy: {time_policy}")
        self._time_policy = time_policy

        if cost_tolerance <= 0:
            raise ValueError("cost_tolerance must be > 0")
        self._cost_tolerance = cost_tolerance

        # Determine base directory
        if database_dir is not None:
            self._base_dir = Path(database_dir)
        elif environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.recipe_cost
        """
        return Path.home() / ".recipe_cost"

    def ensure_directories(self):
        """Create the database directory if it doesn't exist."""
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def log_level(self) -> str:
        """Minimum log severity name."""
        return self._log_level

    @property
    def log_level_value(self) -> int:
        """Minimum log severity as a logging module constant."""
        return logging.getLevelName(self._log_level)

    @property
    def max_expansion_depth(self) -> int:
        """Maximum semilavorato nesting depth accepted by the expander."""
        return self._max_expansion_depth

    @property
    def time_policy(self) -> str:
        """Default preparation-time scaling policy."""
        return self._time_policy

    @property
    def cost_tolerance(self) -> float:
        """Tolerance for effective cost validation."""
        return self._cost_tolerance

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            Database URL string for SQLAlchemy
        """
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(environment='{self.environment}', log_level='{self._log_level}', "
            f"max_expansion_depth={self._max_expansion_depth}, "
            f"time_policy='{self._time_policy}')"
        )


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    The first call creates the instance; later calls return it unchanged even
    if a different environment is requested.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    RECIPE_COST_ENV or defaults to production. Ignored if
                    the instance already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger = logging.getLogger(__name__)
        logger.warning(
            f"get_config() called with environment='{environment}' but config "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing config."
        )

    return _config_instance


def set_config(config: Config) -> Config:
    """
    Install an explicitly built configuration as the process-wide instance.

    Args:
        config: Config created at process start

    Returns:
        The installed config
    """
    global _config_instance
    _config_instance = config
    return config


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """
    Get the database URL.

    Returns:
        SQLAlchemy database URL string
    """
    return get_config().database_url
