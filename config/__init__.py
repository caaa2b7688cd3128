"""Configuration module for the faceless video pipeline."""

from config.settings import ExecutionProfile, Settings

__all__ = ["ExecutionProfile", "Settings"]
