"""Configuration management for intlscan.

Loads environment variables and provides centralized config access.
"""
import os
from pathlib import Path
from typing import Dict, List, Set

from dotenv import load_dotenv

__version__ = "0.3.0"

DEFAULT_EXCLUDED_DIRS = {
    'node_modules', '.git', '.next', '.turbo', '.vercel', 'dist', 'build',
    'out', 'coverage', '.cache', '__pycache__',
}

SOURCE_EXTENSIONS = ['.js', '.jsx', '.mjs', '.cjs', '.ts', '.tsx', '.mts', '.cts']


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: Path = None):
        """Initialize config by loading a .env file.

        Args:
            env_file: Explicit .env path; defaults to .env in the working directory
        """
        load_dotenv(env_file or Path.cwd() / ".env")

    @property
    def delimiter(self) -> str:
        """Separator between namespace and key.

        Returns:
            INTLSCAN_DELIMITER, or '.' when unset
        """
        return os.getenv("INTLSCAN_DELIMITER", ".")

    @property
    def project_root(self) -> Path:
        """Directory `@/` imports resolve against.

        Returns:
            INTLSCAN_PROJECT_ROOT, or the working directory
        """
        return Path(os.getenv("INTLSCAN_PROJECT_ROOT", "."))

    @property
    def excluded_dirs(self) -> Set[str]:
        """Directory names skipped while walking a project.

        INTLSCAN_EXCLUDED_DIRS (comma separated) adds to the defaults.
        """
        extra = os.getenv("INTLSCAN_EXCLUDED_DIRS", "")
        return DEFAULT_EXCLUDED_DIRS | {name.strip() for name in extra.split(",") if name.strip()}

    @property
    def aliases(self) -> Dict[str, str]:
        """Import prefixes mapped to directories under the project root.

        INTLSCAN_ALIASES holds comma separated `alias=directory` pairs, e.g.
        `~=app,#lib/*=src/lib/*`. Entries without `=` are ignored.
        """
        aliases = {}
        for entry in os.getenv("INTLSCAN_ALIASES", "").split(","):
            alias, sep, target = entry.partition("=")
            if sep and alias.strip() and target.strip():
                aliases[alias.strip()] = target.strip()
        return aliases

    @property
    def source_extensions(self) -> List[str]:
        return list(SOURCE_EXTENSIONS)


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
