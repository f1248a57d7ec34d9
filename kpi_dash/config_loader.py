# Path: kpi_dash/config_loader.py
"""
Configuration Loader for kpi_dash (Brand KPI Dashboard)

Loads configuration from .env file for the KPI computation system.
Singleton pattern ensures consistent configuration across all components.

NO hardcoded paths, NO magic numbers.
All configuration comes from environment variables; every key has a
default so a dashboard pass works on a bare environment.
"""

import os
from typing import Optional, Any
from pathlib import Path
from dotenv import load_dotenv

from constants import DEFAULT_MAX_FORMULA_DEPTH, DECIMAL_SEPARATOR, EMPTY_PLACEHOLDER


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================

# Logging Defaults
DEFAULT_LOG_LEVEL: str = 'INFO'
DEFAULT_LOG_MAX_SIZE_MB: int = 10
DEFAULT_LOG_BACKUP_COUNT: int = 5

# Cache Defaults
DEFAULT_CACHE_TTL_HOURS: int = 1

# Database Defaults
DEFAULT_DATABASE_PATH: str = 'kpi_dash.db'


class ConfigLoader:
    """
    Singleton configuration loader for kpi_dash.

    Loads configuration from environment variables with validation,
    type conversion, and sensible defaults.

    Example:
        config = ConfigLoader()
        depth = config.get('max_formula_depth')  # Returns int
        log_dir = config.get('log_dir')  # Returns Path object
    """

    _instance: Optional['ConfigLoader'] = None
    _initialized: bool = False

    def __new__(cls) -> 'ConfigLoader':
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """
        Initialize configuration loader.

        Only runs once due to singleton pattern. Loads .env file
        on first instantiation.
        """
        if ConfigLoader._initialized:
            return

        # kpi_dash/config_loader.py -> .env is in same directory
        current_file = Path(__file__).resolve()
        project_root = current_file.parent
        env_path = project_root / '.env'

        if env_path.exists():
            load_dotenv(dotenv_path=env_path, interpolate=True)

        self._project_root = project_root
        self._config = self._load_configuration()
        ConfigLoader._initialized = True

    def _load_configuration(self) -> dict[str, Any]:
        """
        Load all configuration from environment.

        Returns:
            Dictionary of configuration values with proper types
        """
        log_dir = self._get_path('KPI_DASH_LOG_DIR') or self._project_root / 'logs'

        config = {
            # ================================================================
            # ENVIRONMENT & DEBUG
            # ================================================================
            'environment': self._get_env('KPI_DASH_ENVIRONMENT', 'development'),
            'debug': self._get_bool('KPI_DASH_DEBUG', False),

            # ================================================================
            # LOGGING CONFIGURATION
            # ================================================================
            'log_dir': log_dir,
            'log_level': self._get_env('KPI_DASH_LOG_LEVEL', DEFAULT_LOG_LEVEL),
            'log_console': self._get_bool('KPI_DASH_LOG_CONSOLE', True),
            'log_max_size_mb': self._get_int(
                'KPI_DASH_LOG_MAX_SIZE_MB', DEFAULT_LOG_MAX_SIZE_MB
            ),
            'log_backup_count': self._get_int(
                'KPI_DASH_LOG_BACKUP_COUNT', DEFAULT_LOG_BACKUP_COUNT
            ),

            # ================================================================
            # CACHE CONFIGURATION
            # ================================================================
            'enable_caching': self._get_bool('KPI_DASH_ENABLE_CACHING', True),
            'cache_ttl_hours': self._get_float(
                'KPI_DASH_CACHE_TTL_HOURS', DEFAULT_CACHE_TTL_HOURS
            ),

            # ================================================================
            # CALCULATION CONFIGURATION
            # ================================================================
            'max_formula_depth': self._get_int(
                'KPI_DASH_MAX_FORMULA_DEPTH', DEFAULT_MAX_FORMULA_DEPTH
            ),

            # ================================================================
            # DISPLAY CONFIGURATION
            # ================================================================
            'decimal_separator': self._get_env(
                'KPI_DASH_DECIMAL_SEPARATOR', DECIMAL_SEPARATOR
            ),
            'empty_placeholder': self._get_env(
                'KPI_DASH_EMPTY_PLACEHOLDER', EMPTY_PLACEHOLDER
            ),

            # ================================================================
            # DATABASE CONFIGURATION
            # ================================================================
            # Full URL wins over the discrete settings below
            'database_url': self._get_env('KPI_DASH_DATABASE_URL', ''),
            'database_path': self._get_path('KPI_DASH_DATABASE_PATH')
            or self._project_root / DEFAULT_DATABASE_PATH,

            # PostgreSQL configuration
            'db_host': self._get_env('KPI_DASH_DB_HOST', 'localhost'),
            'db_port': self._get_int('KPI_DASH_DB_PORT', 5432),
            'db_name': self._get_env('KPI_DASH_DB_NAME', 'kpi_dash_db'),
            'db_user': self._get_env('KPI_DASH_DB_USER', ''),
            'db_password': self._get_env('KPI_DASH_DB_PASSWORD', ''),
            'db_pool_size': self._get_int('KPI_DASH_DB_POOL_SIZE', 5),
            'db_pool_max_overflow': self._get_int('KPI_DASH_DB_POOL_MAX_OVERFLOW', 10),
            'db_pool_timeout': self._get_int('KPI_DASH_DB_POOL_TIMEOUT', 30),
            'db_pool_recycle': self._get_int('KPI_DASH_DB_POOL_RECYCLE', 3600),
        }

        return config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self._config.get(key, default)

    def _get_path(self, key: str, required: bool = False) -> Optional[Path]:
        """
        Get path from environment variable.

        Args:
            key: Environment variable name
            required: If True, raise error when missing

        Returns:
            Path object or None

        Raises:
            ValueError: If required and missing
        """
        value = os.getenv(key)

        if not value:
            if required:
                raise ValueError(f"Required path not configured: {key}")
            return None

        # Handle variable interpolation
        if '${' in value:
            value = os.path.expandvars(value)

        return Path(value)

    def _get_env(self, key: str, default: str = '') -> str:
        """Get string environment variable."""
        return os.getenv(key, default)

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable."""
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable."""
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    def _get_bool(self, key: str, default: bool) -> bool:
        """Get boolean environment variable."""
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_db_connection_string(self) -> str:
        """
        Build database connection string.

        Returns:
            KPI_DASH_DATABASE_URL when set, otherwise a PostgreSQL URL
            assembled from the discrete db_* settings
        """
        if self._config['database_url']:
            return self._config['database_url']
        return (
            f"postgresql://{self._config['db_user']}:"
            f"{self._config['db_password']}@"
            f"{self._config['db_host']}:"
            f"{self._config['db_port']}/"
            f"{self._config['db_name']}"
        )

    def __repr__(self) -> str:
        """String representation showing key settings."""
        return (
            f"ConfigLoader("
            f"environment={self._config.get('environment')}, "
            f"log_dir={self._config.get('log_dir')})"
        )


__all__ = ['ConfigLoader']
