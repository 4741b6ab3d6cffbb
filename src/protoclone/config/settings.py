"""Configuration settings using Pydantic Settings.

Provides typed configuration for cloning strategies with environment variable
support.

Usage:
    from protoclone.config import CloneSettings, build_cloner

    # Load from environment variables (PROTOCLONE_*)
    settings = CloneSettings()
    cloner = build_cloner(settings)

    # Or override with explicit values
    settings = CloneSettings(strategy="serialization", codec="pickle")
"""

from __future__ import annotations

from typing import Literal

try:
    from pydantic import Field
    from pydantic_settings import BaseSettings, SettingsConfigDict
except ImportError as e:
    raise ImportError(
        "pydantic-settings is required for config module. "
        "Install with: pip install protoclone[config]"
    ) from e

from protoclone.core.protocol import Cloner
from protoclone.core.structural import DEFAULT_MAX_DEPTH, DEFAULT_MAX_NODES, StructuralCloner
from protoclone.serialization import JsonCodec, PickleCodec, SerializationCloner
from protoclone.serialization.protocol import Codec


class CloneSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for cloners handed to registries.

    Attributes:
        strategy: Default cloning strategy (structural, serialization).
        codec: Codec for the serialization strategy (json, pickle).
        max_nodes: Ceiling on distinct nodes per structural clone.
        max_depth: Ceiling on nesting depth per structural clone or JSON round trip.
        strict_serialization: Fail instead of dropping fields the JSON codec cannot see.

    Environment Variables:
        PROTOCLONE_STRATEGY
        PROTOCLONE_CODEC
        PROTOCLONE_MAX_NODES
        PROTOCLONE_MAX_DEPTH
        PROTOCLONE_STRICT_SERIALIZATION
    """

    model_config = SettingsConfigDict(
        env_prefix="PROTOCLONE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    strategy: Literal["structural", "serialization"] = "structural"
    codec: Literal["json", "pickle"] = "json"
    max_nodes: int = Field(default=DEFAULT_MAX_NODES, gt=0)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, gt=0)
    strict_serialization: bool = False


def build_codec(settings: CloneSettings) -> Codec:
    """Instantiate the codec named by settings.

    Args:
        settings: Settings to read.

    Returns:
        A JsonCodec or PickleCodec.
    """
    if settings.codec == "pickle":
        return PickleCodec()
    return JsonCodec(strict=settings.strict_serialization, max_depth=settings.max_depth)


def build_cloner(settings: CloneSettings | None = None) -> Cloner:
    """Instantiate the cloner named by settings.

    Args:
        settings: Settings to read (default: loaded from the environment).

    Returns:
        A StructuralCloner or SerializationCloner.
    """
    settings = settings if settings is not None else CloneSettings()
    if settings.strategy == "serialization":
        return SerializationCloner(codec=build_codec(settings))
    return StructuralCloner(max_nodes=settings.max_nodes, max_depth=settings.max_depth)
