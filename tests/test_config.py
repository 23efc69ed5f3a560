import argparse

import pytest

from respond.config import PipelineConfig, default_path_prefix, parse_breakpoints, parse_formats


def test_defaults():
    config = PipelineConfig()
    assert config.breakpoints == (1400, 1200, 992, 768, 576)
    assert config.formats == ("avif", "webp", "jpg")
    assert config.modern_formats == ("avif", "webp")
    assert config.standard_width == 1024
    assert config.quality_for("jpg") == 85
    assert config.quality_for("webp") == 80
    assert config.quality_for("avif") == 80


def test_breakpoints_normalised_descending():
    config = PipelineConfig(breakpoints=(576, 1400, 768, 576))
    assert config.breakpoints == (1400, 768, 576)


def test_formats_ordered_by_preference():
    assert PipelineConfig(formats=("jpg", "webp", "avif")).formats == ("avif", "webp", "jpg")
    assert PipelineConfig(formats=("webp",)).formats == ("webp",)
    assert PipelineConfig(formats=("JPEG",)).formats == ("jpg",)


@pytest.mark.parametrize("kwargs", [
    {"breakpoints": ()},
    {"breakpoints": (0, 100)},
    {"standard_width": 0},
    {"formats": ("gif",)},
    {"quality": {"webp": 80}},
])
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        PipelineConfig(**kwargs)


def test_parse_breakpoints():
    assert parse_breakpoints("576, 1400,992") == (1400, 992, 576)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_breakpoints("a,b")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_breakpoints("0")


def test_parse_formats():
    assert parse_formats("webp,avif") == ("avif", "webp")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_formats("tiff")


def test_default_path_prefix_from_environment(monkeypatch):
    monkeypatch.delenv("RESPOND_PATH_PREFIX", raising=False)
    assert default_path_prefix() == ""
    monkeypatch.setenv("RESPOND_PATH_PREFIX", "/shop")
    assert default_path_prefix() == "/shop"


def test_config_is_hashable():
    config = PipelineConfig(quality={"jpg": 70, "webp": 60, "avif": 50})
    assert config.quality == (("avif", 50), ("jpg", 70), ("webp", 60))
    assert config.quality_for("webp") == 60
    assert hash(config) == hash(PipelineConfig(quality=(("webp", 60), ("jpg", 70), ("avif", 50))))
    assert len({PipelineConfig(), PipelineConfig()}) == 1
