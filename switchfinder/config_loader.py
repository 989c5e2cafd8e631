"""Configuration Loader for the foot switch finder.

Finder tables that sales may want to tune (relaxation messages, environment
ratings, browse keywords, seed catalog) live in ``config/finder.yaml``.
Secrets and deployment switches come from the environment (``.env`` supported).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS FOR CONFIGURATION VALIDATION
# =============================================================================

class FinderMeta(BaseModel):
    """Finder metadata shown on the landing endpoint."""
    id: str = "switchfinder"
    name: str = "Foot Switch Finder"
    company: str = ""
    description: str = ""
    version: str = "1.0"


class EnvironmentRating(BaseModel):
    """An operating environment and the IP ratings that satisfy it."""
    name: str
    label: str = ""
    accepted_ip: list[str] = Field(default_factory=list)
    unconstrained: bool = False


class CatalogSettings(BaseModel):
    """Where the seed catalog lives and which seed version the store expects."""
    seed_path: str = "data/seed_catalog.json"
    seed_version: str = "1"
    db_path: str = "data/catalog_db.json"


class BrowseSettings(BaseModel):
    """Product browser defaults."""
    default_sort_mode: str = "relevance"
    corded_keywords: list[str] = Field(default_factory=list)
    cordless_keywords: list[str] = Field(default_factory=list)


class ExportSettings(BaseModel):
    """Recommendation sheet settings."""
    sheet_title: str = "Recommendation"
    company_line: str = ""
    contact_line: str = ""


# =============================================================================
# CONFIG CONTAINER
# =============================================================================

@dataclass
class FinderConfig:
    """Complete finder configuration container."""
    meta: FinderMeta = field(default_factory=FinderMeta)
    environments: list[EnvironmentRating] = field(default_factory=list)
    relaxed_messages: dict[str, str] = field(default_factory=dict)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)
    browse: BrowseSettings = field(default_factory=BrowseSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
    config_path: str = ""

    @property
    def default_sort_mode(self) -> str:
        return self.browse.default_sort_mode

    @property
    def corded_keywords(self) -> list[str]:
        return self.browse.corded_keywords

    @property
    def cordless_keywords(self) -> list[str]:
        return self.browse.cordless_keywords

    @property
    def environment_ip_ratings(self) -> dict[str, frozenset]:
        """Constrained environments -> accepted IP ratings."""
        return {
            env.name: frozenset(ip.upper() for ip in env.accepted_ip)
            for env in self.environments
            if not env.unconstrained
        }

    @property
    def unconstrained_environments(self) -> frozenset:
        return frozenset(env.name for env in self.environments if env.unconstrained)

    def resolve_path(self, relative: str) -> Path:
        """Resolve a path from the config relative to the package directory."""
        path = Path(relative)
        if path.is_absolute():
            return path
        return _PACKAGE_DIR / path


# =============================================================================
# LOADING
# =============================================================================

_PACKAGE_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = _PACKAGE_DIR / "config" / "finder.yaml"


def _resolve_config_path(config_path: Optional[str] = None) -> Path:
    if config_path:
        return Path(config_path)
    env_path = os.environ.get("FINDER_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_finder_config(config_path: Optional[str] = None) -> FinderConfig:
    """Load and validate finder configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, uses ``FINDER_CONFIG`` or the bundled file.

    Returns:
        Validated FinderConfig object
    """
    path = _resolve_config_path(config_path)
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    config = FinderConfig(config_path=str(path))
    config.meta = FinderMeta(**raw.get("finder", {}))

    for env in raw.get("environments", []):
        config.environments.append(EnvironmentRating(**env))

    config.relaxed_messages = {
        str(tag): str(message) for tag, message in (raw.get("relaxed_messages") or {}).items()
    }
    config.catalog = CatalogSettings(**raw.get("catalog", {}))
    config.browse = BrowseSettings(**raw.get("browse", {}))
    config.export = ExportSettings(**raw.get("export", {}))

    # Deployment override for the store location
    db_path = os.environ.get("CATALOG_DB_PATH")
    if db_path:
        config.catalog.db_path = db_path

    logger.info(f"[CONFIG] Loaded finder config from {path} "
                f"({len(config.environments)} environments, {len(config.relaxed_messages)} messages)")
    return config


_config: Optional[FinderConfig] = None


def get_config() -> FinderConfig:
    """Get the finder configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_finder_config()
    return _config


def get_loaded_config() -> Optional[FinderConfig]:
    """The configuration if it has been loaded, else None. Never triggers a load."""
    return _config


def reload_config(config_path: Optional[str] = None) -> FinderConfig:
    """Force reload of configuration."""
    global _config
    _config = load_finder_config(config_path)
    return _config


def reset_config() -> None:
    """Forget the loaded configuration; lookups fall back to built-in tables."""
    global _config
    _config = None


def get_config_summary() -> dict:
    """Summary of the active configuration for the landing endpoint."""
    config = get_config()
    return {
        "finder": config.meta.model_dump(),
        "environments": [
            {"name": e.name, "label": e.label, "accepted_ip": e.accepted_ip}
            for e in config.environments
        ],
        "relaxation_tags": sorted(config.relaxed_messages),
        "default_sort_mode": config.default_sort_mode,
    }
