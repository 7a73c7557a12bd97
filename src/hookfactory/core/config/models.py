"""
Configuration data models for hookfactory.

These models define the structure of .hookfactory.json and
~/.config/hookfactory/config.json files, with validation via Pydantic.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HookFactoryConfig(BaseModel):
    """
    Top-level hookfactory configuration.

    Controls where generated hooks are written, where the host runtime's
    user-level settings live, and how many settings backups are kept.
    """

    model_config = ConfigDict(extra="ignore")

    backup_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Settings backups retained per scope",
    )
    output_dir: str = Field(
        default="generated-hooks",
        description="Where 'hook build' writes bundles (relative to the project root)",
    )
    claude_dir: Optional[str] = Field(
        default=None,
        description="Host runtime config directory holding the user-level settings.json",
    )
    generated_by: str = Field(
        default="hookfactory",
        description="Provenance recorded in generated hook metadata",
    )

    @field_validator("output_dir", "generated_by")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    def get_claude_dir(self) -> Path:
        """
        Resolve the host runtime config directory.

        Precedence: configured claude_dir > $CLAUDE_CONFIG_DIR > ~/.claude
        """
        if self.claude_dir:
            return Path(self.claude_dir).expanduser()
        if env_dir := os.environ.get("CLAUDE_CONFIG_DIR"):
            return Path(env_dir).expanduser()
        return Path.home() / ".claude"

    def get_output_path(self, project_dir: Path) -> Path:
        """Absolute path of the build output directory."""
        output = Path(self.output_dir).expanduser()
        return output if output.is_absolute() else project_dir / output
