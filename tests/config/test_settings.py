"""Tests for CloneSettings and cloner construction."""

import pytest

pytest.importorskip("pydantic_settings")

from protoclone import JsonCodec, PickleCodec, SerializationCloner, StructuralCloner
from protoclone.config import CloneSettings, build_cloner, build_codec


def test_defaults() -> None:
    settings = CloneSettings()

    assert settings.strategy == "structural"
    assert settings.codec == "json"
    assert settings.max_nodes == 1_000_000
    assert settings.max_depth == 10_000
    assert settings.strict_serialization is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROTOCLONE_STRATEGY", "serialization")
    monkeypatch.setenv("PROTOCLONE_CODEC", "pickle")
    monkeypatch.setenv("PROTOCLONE_MAX_DEPTH", "50")

    settings = CloneSettings()

    assert settings.strategy == "serialization"
    assert settings.codec == "pickle"
    assert settings.max_depth == 50


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValueError):
        CloneSettings(strategy="telepathy")
    with pytest.raises(ValueError):
        CloneSettings(max_nodes=0)


def test_build_structural_cloner_honours_limits() -> None:
    cloner = build_cloner(CloneSettings(max_depth=2))

    assert isinstance(cloner, StructuralCloner)
    assert cloner.clone([[1]]) == [[1]]


def test_build_serialization_cloner() -> None:
    cloner = build_cloner(CloneSettings(strategy="serialization", strict_serialization=True))

    assert isinstance(cloner, SerializationCloner)
    assert isinstance(cloner.codec, JsonCodec)
    assert cloner.codec.strict


def test_build_codec() -> None:
    assert isinstance(build_codec(CloneSettings(codec="pickle")), PickleCodec)
    assert isinstance(build_codec(CloneSettings()), JsonCodec)


def test_json_codec_honours_depth_limit() -> None:
    codec = build_codec(CloneSettings(max_depth=3))

    assert isinstance(codec, JsonCodec)
    assert codec.max_depth == 3
