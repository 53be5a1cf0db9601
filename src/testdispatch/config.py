"""Configuration management for testdispatch."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from testdispatch.core.menu import DEFAULT_FORMATS
from testdispatch.core.options import FilterSpec, normalize_filters

CONFIG_NAMES = ["testdispatch.json", ".testdispatch.json"]


class ProjectConfig(BaseModel):
    """Project identification and metadata."""

    name: str = Field(description="Project name for identification")
    description: str = Field(default="", description="Brief description of the project")


class DiscoveryConfig(BaseModel):
    """Test discovery configuration."""

    path: str = Field(default="tests", description="Test directory handed to pytest collection")
    timeout_seconds: int = Field(default=60, description="Discovery timeout")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Timeout must be at least 1 second")
        return v


class ExecutionConfig(BaseModel):
    """Per-case execution configuration."""

    command: str = Field(
        default="pytest -q {target}",
        description="Command run for each case; {target} is replaced by the case target",
    )
    working_directory: str = Field(default=".", description="Directory to run commands in")
    timeout_seconds: int = Field(default=300, description="Timeout per case")
    environment: dict[str, str] = Field(default_factory=dict, description="Additional environment variables")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Timeout must be at least 1 second")
        return v

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Test command cannot be empty")
        if "{target}" not in v:
            raise ValueError("Test command must contain the {target} placeholder")
        return v


class MenuConfig(BaseModel):
    """Menu rendering configuration."""

    format: str = Field(default="text", description="Default menu format (html, text)")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        allowed = set(DEFAULT_FORMATS)
        if v.lower() not in allowed:
            raise ValueError(f"Format must be one of: {allowed}")
        return v.lower()


class DispatchConfig(BaseModel):
    """Main configuration for testdispatch."""

    project: ProjectConfig = Field(default_factory=lambda: ProjectConfig(name="my-project"))
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    menu: MenuConfig = Field(default_factory=MenuConfig)
    filters: list[FilterSpec] = Field(default_factory=list, description="Filters applied to every run")

    @field_validator("filters", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> list[FilterSpec]:
        return normalize_filters(v)

    @classmethod
    def from_file(cls, path: Path | str) -> "DispatchConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "DispatchConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        current = start_dir.resolve()
        while True:
            for name in CONFIG_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create testdispatch.json or run 'testdispatch init'"
        )

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def get_absolute_paths(self, base_dir: Path | str | None = None) -> dict[str, Path]:
        """Get absolute paths for various config paths."""
        if base_dir is None:
            base_dir = Path.cwd()
        else:
            base_dir = Path(base_dir)

        return {
            "base_dir": base_dir.resolve(),
            "test_directory": (base_dir / self.discovery.path).resolve(),
            "working_directory": (base_dir / self.execution.working_directory).resolve(),
        }


def get_default_config() -> DispatchConfig:
    """Return a default configuration."""
    return DispatchConfig(
        project=ProjectConfig(name="my-project"),
        discovery=DiscoveryConfig(path="tests"),
        execution=ExecutionConfig(command="pytest -q {target}", working_directory="."),
    )


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.project.description = "Brief description of your project"
    config.filters = [FilterSpec(name="summary"), FilterSpec(name="profiler", analyze={"top": 10})]
    config.to_file(output_path)
    return output_path
