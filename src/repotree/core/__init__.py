"""Core shared infrastructure for repotree.

This package contains foundational utilities:
    - config: Repository configuration management
    - console: Rich console output and logging
    - result: Result types and error hierarchy
    - security: Working tree path containment
"""

from __future__ import annotations

from . import config, console

__all__ = ["config", "console"]
