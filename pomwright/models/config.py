"""Configuration model for page objects and the locator engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class PomConfig(BaseModel):
    # Logging
    log_level: str = "WARNING"

    # Nested locator debugging: max elements recorded per nesting step
    debug_max_elements: int = 25

    # Selectors
    test_id_attribute: str = "data-testid"
    register_data_cy_engine: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level == "WARN":
            level = "WARNING"
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{v}'")
        return level

    @field_validator("debug_max_elements")
    @classmethod
    def positive_cap(cls, v: int) -> int:
        if v < 0:
            raise ValueError("debug_max_elements must be >= 0")
        return v

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def load(cls, path: str | Path) -> "PomConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
