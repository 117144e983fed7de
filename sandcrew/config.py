"""Configuration loading and management."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from sandcrew.constants import (
    DEFAULT_AUTHOR_EMAIL,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_BASE_BRANCH,
    DEFAULT_MAX_TOOL_ROUNDS,
    DEFAULT_MODEL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SETTLE_MS,
    STATE_DIR,
)


@dataclass
class Config:
    """SandCrew configuration.

    Loads from .env and optionally .sandcrew/config.json
    """

    # API Keys
    anthropic_api_key: Optional[str] = None
    github_token: Optional[str] = None

    # Model settings
    default_model: str = DEFAULT_MODEL
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT

    # Agent loop
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS
    settle_ms: int = DEFAULT_SETTLE_MS

    # Version control
    base_branch: str = DEFAULT_BASE_BRANCH
    author_name: str = DEFAULT_AUTHOR_NAME
    author_email: str = DEFAULT_AUTHOR_EMAIL
    checkout_dir: Optional[Path] = None

    # Paths excluded from change tracking (from .sandcrew/config.json)
    scaffold_paths: list[str] = field(default_factory=list)

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "Config":
        """Load configuration from environment and project-specific config.

        Args:
            project_root: Project root directory (for .sandcrew/config.json)

        Returns:
            Config instance
        """
        load_dotenv()

        checkout_env = os.getenv("SANDCREW_CHECKOUT_DIR")

        config = cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            github_token=os.getenv("GITHUB_TOKEN"),
            default_model=os.getenv("SANDCREW_DEFAULT_MODEL", DEFAULT_MODEL),
            request_timeout=int(os.getenv("SANDCREW_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
            max_tool_rounds=int(os.getenv("SANDCREW_MAX_TOOL_ROUNDS", DEFAULT_MAX_TOOL_ROUNDS)),
            settle_ms=int(os.getenv("SANDCREW_SETTLE_MS", DEFAULT_SETTLE_MS)),
            base_branch=os.getenv("SANDCREW_BASE_BRANCH", DEFAULT_BASE_BRANCH),
            author_name=os.getenv("SANDCREW_AUTHOR_NAME", DEFAULT_AUTHOR_NAME),
            author_email=os.getenv("SANDCREW_AUTHOR_EMAIL", DEFAULT_AUTHOR_EMAIL),
            checkout_dir=Path(checkout_env) if checkout_env else None,
        )

        if project_root:
            if config.checkout_dir is None:
                config.checkout_dir = project_root / STATE_DIR / "repo"

            project_config_path = project_root / STATE_DIR / "config.json"
            if project_config_path.exists():
                try:
                    with open(project_config_path) as f:
                        project_config = json.load(f)
                        config.scaffold_paths = list(project_config.get("scaffold_paths", []))
                except (json.JSONDecodeError, IOError):
                    pass  # Ignore invalid config

        return config

    @property
    def settle_delay(self) -> float:
        """Settle delay in seconds."""
        return self.settle_ms / 1000

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not self.anthropic_api_key:
            errors.append("No API key found. Set ANTHROPIC_API_KEY")

        if self.max_tool_rounds <= 0:
            errors.append("max_tool_rounds must be positive")

        if self.settle_ms < 0:
            errors.append("settle_ms must not be negative")

        if self.request_timeout <= 0:
            errors.append("request_timeout must be positive")

        return errors

    def to_dict(self) -> dict:
        """Convert config to dictionary (for logging/display)."""
        return {
            "default_model": self.default_model,
            "max_tool_rounds": self.max_tool_rounds,
            "settle_ms": self.settle_ms,
            "request_timeout": self.request_timeout,
            "base_branch": self.base_branch,
            "author": f"{self.author_name} <{self.author_email}>",
            "checkout_dir": str(self.checkout_dir) if self.checkout_dir else None,
            "scaffold_paths": self.scaffold_paths,
            "has_anthropic_key": bool(self.anthropic_api_key),
            "has_github_token": bool(self.github_token),
        }
