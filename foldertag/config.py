"""
Configuration management for folder tagging.

The configuration is stored as a TOML file in the config directory
(by default `.foldertag/` inside the vault). It holds the formatting
policy and the directory tag mappings, plus an optional snapshot of the
settings that were in force before the last unapplied change.

Loaded once at startup; every mutation is persisted immediately.
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import tomli_w

from .mappings import DirectoryMappingStore
from .types import DEPTH_LAST1, FOLDER_DEPTHS, FormattingPolicy

logger = logging.getLogger(__name__)


CONFIG_FILENAME = "foldertag.toml"
CONFIG_DIRNAME = ".foldertag"
CONFIG_VERSION = 1


@dataclass
class ResolutionSettings:
    """Everything that affects which tags a path resolves to."""
    policy: FormattingPolicy = field(default_factory=FormattingPolicy)
    mappings: DirectoryMappingStore = field(default_factory=DirectoryMappingStore)

    def copy(self) -> "ResolutionSettings":
        return ResolutionSettings(policy=self.policy, mappings=self.mappings.copy())

    def same_as(self, other: "ResolutionSettings") -> bool:
        return self.policy == other.policy and self.mappings.to_list() == other.mappings.to_list()


@dataclass
class FolderTagConfig:
    """Complete configuration for a vault."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    settings: ResolutionSettings = field(default_factory=ResolutionSettings)

    # Settings before the first change since the last full reapply.
    # Lets a rerun strip tags the old settings produced.
    previous: Optional[ResolutionSettings] = None

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def policy(self) -> FormattingPolicy:
        return self.settings.policy

    @property
    def mappings(self) -> DirectoryMappingStore:
        return self.settings.mappings

    @property
    def folder_depth(self) -> str:
        return self.settings.policy.depth

    @property
    def tag_prefix(self) -> str:
        return self.settings.policy.prefix

    @property
    def tag_suffix(self) -> str:
        return self.settings.policy.suffix

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()

    def remember_previous(self) -> None:
        """Snapshot the current settings ahead of a change, once per cycle."""
        if self.previous is None:
            self.previous = self.settings.copy()

    def forget_previous(self) -> None:
        self.previous = None

    def release_from_previous(self, directory: str) -> None:
        """
        Drop a directory's mapping from the snapshot.

        Used when a mapping is removed or edited without retagging: the
        tags it left on notes now belong to the user, and a rerun must not
        strip them as stale.
        """
        if self.previous is None:
            return
        index = self.previous.mappings.index_of(directory)
        if index is not None:
            self.previous.mappings.remove(index)
        if self.previous.same_as(self.settings):
            self.forget_previous()


def get_config_dir(vault: Path) -> Path:
    """
    Resolve the config directory for a vault.

    Priority:
    1. FOLDERTAG_CONFIG_DIR environment variable
    2. <vault>/.foldertag
    """
    env_dir = os.environ.get("FOLDERTAG_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path(vault) / CONFIG_DIRNAME


def _parse_settings(section: dict, mappings_data: Any) -> ResolutionSettings:
    depth = str(section.get("folder_depth", DEPTH_LAST1))
    if depth not in FOLDER_DEPTHS:
        logger.warning("Unknown folder_depth %r in config, using %r", depth, DEPTH_LAST1)
        depth = DEPTH_LAST1

    policy = FormattingPolicy(
        depth=depth,
        prefix=str(section.get("tag_prefix", "")),
        suffix=str(section.get("tag_suffix", "")),
    )

    if not isinstance(mappings_data, list):
        mappings_data = []
    mappings = DirectoryMappingStore.from_list(
        d for d in mappings_data if isinstance(d, dict)
    )
    return ResolutionSettings(policy=policy, mappings=mappings)


def _settings_to_dict(settings: ResolutionSettings) -> dict:
    return {
        "folder_depth": settings.policy.depth,
        "tag_prefix": settings.policy.prefix,
        "tag_suffix": settings.policy.suffix,
    }


def load_config(config_dir: Path) -> FolderTagConfig:
    """
    Load configuration from a config directory.

    Missing fields are filled from defaults.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is newer than this version understands
    """
    config_path = config_dir / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    section = data.get("settings", {})
    version = section.get("version", CONFIG_VERSION)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    settings = _parse_settings(section, data.get("directory_tag_mappings", []))

    previous = None
    prev_section = data.get("previous")
    if isinstance(prev_section, dict):
        previous = _parse_settings(prev_section, prev_section.get("directory_tag_mappings", []))

    return FolderTagConfig(
        path=config_dir,
        version=version,
        created=section.get("created", ""),
        settings=settings,
        previous=previous,
    )


def save_config(config: FolderTagConfig) -> None:
    """
    Save configuration to the config directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "settings": {
            "version": config.version,
            "created": config.created,
            **_settings_to_dict(config.settings),
        },
        "directory_tag_mappings": config.mappings.to_list(),
    }
    if config.previous is not None:
        data["previous"] = {
            **_settings_to_dict(config.previous),
            "directory_tag_mappings": config.previous.mappings.to_list(),
        }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)
    logger.debug("Saved config to %s", config.config_path)


def load_or_create_config(config_dir: Path) -> FolderTagConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists():
        return load_config(config_dir)
    else:
        config = FolderTagConfig(path=config_dir)
        save_config(config)
        return config


def update_config(
    config: FolderTagConfig,
    *,
    folder_depth: Optional[str] = None,
    tag_prefix: Optional[str] = None,
    tag_suffix: Optional[str] = None,
) -> FolderTagConfig:
    """
    Change formatting settings and persist.

    Existing document tags are not touched; run a reapply for that.

    Raises:
        ValueError: If folder_depth is not a known policy
    """
    current = config.policy
    policy = FormattingPolicy(
        depth=current.depth if folder_depth is None else folder_depth,
        prefix=current.prefix if tag_prefix is None else tag_prefix,
        suffix=current.suffix if tag_suffix is None else tag_suffix,
    )
    if policy == current:
        return config

    config.remember_previous()
    config.settings.policy = policy
    save_config(config)
    logger.info(
        "Settings changed: depth=%s prefix=%r suffix=%r",
        policy.depth, policy.prefix, policy.suffix,
    )
    return config
