"""Configuration module using Pydantic Settings.

Provides typed configuration for cloners with environment variable support.

Usage:
    from protoclone.config import CloneSettings, build_cloner

    registry = PrototypeRegistry(cloner=build_cloner(CloneSettings(max_depth=500)))
"""

from protoclone.config.settings import CloneSettings, build_cloner, build_codec

__all__ = [
    "CloneSettings",
    "build_cloner",
    "build_codec",
]
