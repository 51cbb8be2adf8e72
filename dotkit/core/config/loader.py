"""
Configuration loader — reads dotkit.yml into a validated Settings model.

Resolution order for every field:
    environment variable  >  dotkit.yml  >  built-in default

The config file is optional. It is looked up at ``--config PATH`` or,
failing that, at ``<dotfiles_dir>/dotkit.yml``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from dotkit.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "dotkit.yml"
DEFAULT_NEOVIM_VERSION = "0.9.4"

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Everything the installer and verifier need to know about the host."""

    home: Path = Field(default_factory=Path.home)
    dotfiles_dir: Path | None = None        # default: <home>/.dotfiles
    backup_parent: Path | None = None       # default: <home>/dotfiles_backup
    zsh_custom: Path | None = None          # default: <home>/.oh-my-zsh/custom

    extra_path: list[Path] = Field(default_factory=list)
    neovim_version: str | None = DEFAULT_NEOVIM_VERSION

    skip_tmux_checks: bool = False
    fail_on_missing: bool = False

    def model_post_init(self, __context: object) -> None:
        self.home = self.home.expanduser()
        if self.dotfiles_dir is None:
            self.dotfiles_dir = self.home / ".dotfiles"
        if self.backup_parent is None:
            self.backup_parent = self.home / "dotfiles_backup"
        if self.zsh_custom is None:
            self.zsh_custom = self.home / ".oh-my-zsh" / "custom"
        self.dotfiles_dir = self.dotfiles_dir.expanduser()
        self.backup_parent = self.backup_parent.expanduser()
        self.zsh_custom = self.zsh_custom.expanduser()
        self.extra_path = [p.expanduser() for p in self.extra_path]

    @property
    def dotfiles(self) -> Path:
        assert self.dotfiles_dir is not None
        return self.dotfiles_dir

    @property
    def backups(self) -> Path:
        assert self.backup_parent is not None
        return self.backup_parent

    @property
    def zsh_custom_dir(self) -> Path:
        assert self.zsh_custom is not None
        return self.zsh_custom


def _env_flag(name: str, env: dict[str, str]) -> bool | None:
    raw = env.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in _TRUTHY


def _env_overrides(env: dict[str, str]) -> dict:
    """Collect settings from environment variables."""
    data: dict = {}
    if env.get("DOTFILES_DIR"):
        data["dotfiles_dir"] = env["DOTFILES_DIR"]
    if env.get("ZSH_CUSTOM"):
        data["zsh_custom"] = env["ZSH_CUSTOM"]
    if env.get("DOTKIT_EXTRA_PATH"):
        data["extra_path"] = [p for p in env["DOTKIT_EXTRA_PATH"].split(os.pathsep) if p]

    # SKIP_TMUX_CHECKS: any non-empty value turns the toggle on.
    if env.get("SKIP_TMUX_CHECKS"):
        data["skip_tmux_checks"] = True

    flag = _env_flag("DOTKIT_FAIL_ON_MISSING", env)
    if flag is not None:
        data["fail_on_missing"] = flag
    return data


def read_config_file(path: Path) -> dict:
    """Parse a dotkit.yml file into a raw mapping.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or not a mapping.
    """
    logger.debug("Loading settings from %s", path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Allow everything to sit under a "dotkit" key
    if "dotkit" in data and isinstance(data["dotkit"], dict):
        data = data["dotkit"]
    return data


def load_settings(
    path: Path | None = None,
    *,
    env: dict[str, str] | None = None,
    home: Path | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config file. If None, ``<dotfiles_dir>/dotkit.yml``
            is used when it exists.
        env: Environment mapping (default: ``os.environ``).
        home: Home directory override (tests).

    Returns:
        Validated Settings.

    Raises:
        ConfigError: If the explicit file is missing or any file is invalid.
    """
    env = dict(os.environ) if env is None else env
    overrides = _env_overrides(env)

    base: dict = {}
    if home is not None:
        base["home"] = home

    if path is None:
        # Find the dotfiles dir first so the default config location is known
        probe = Settings.model_validate({**base, **overrides})
        candidate = probe.dotfiles / CONFIG_FILE
        if candidate.is_file():
            path = candidate
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    file_data = read_config_file(path) if path is not None else {}

    try:
        settings = Settings.model_validate({**base, **file_data, **overrides})
    except ValidationError as e:
        raise ConfigError(f"Invalid dotkit configuration: {e}") from e

    logger.info(
        "Settings: home=%s dotfiles=%s backups=%s",
        settings.home, settings.dotfiles, settings.backups,
    )
    return settings
