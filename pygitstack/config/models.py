"""Pydantic models for config types."""

from typing import Optional
from pydantic import BaseModel, Field

class RepoConfig(BaseModel):
    """Repository configuration."""
    remote: str = "origin"
    default_branch: str = "main"
    github_host: str = "github.com"
    github_repo_owner: Optional[str] = None
    github_repo_name: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "allow"  # Allow extra fields for backward compatibility

class UserConfig(BaseModel):
    """User configuration."""
    log_git_commands: bool = True

    class Config:
        """Pydantic config."""
        extra = "allow"  # Allow extra fields

class ToolConfig(BaseModel):
    """Tool configuration."""
    # Worker pool size for host calls and pushes
    concurrency: int = 4
    pretend: bool = False

    class Config:
        """Pydantic config."""
        extra = "allow"  # Allow extra fields

class GitStackConfig(BaseModel):
    """Full pygitstack configuration."""
    repo: RepoConfig = Field(default_factory=RepoConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)

    class Config:
        """Pydantic config."""
        extra = "allow"  # Allow extra fields
