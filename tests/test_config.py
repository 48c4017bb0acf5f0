"""Tests for conversion configuration loading and validation."""

import json
import math
import tempfile
from pathlib import Path

import pytest

from norpix_seq.config import ConvertConfig, load_config, parse_bound, parse_normalization
from norpix_seq.errors import ConfigError
from norpix_seq.frame_decoder import Normalization


def test_load_toml(tmp_path):
    toml_content = """
input = "rec/run1.seq"
output = "frames"
format = "tiff"
range = [100, "inf"]
make_dir = true
normalization = "bit_depth"
workers = 4
header_info = "frames/headerinfo.mat"
"""
    path = tmp_path / "convert.toml"
    path.write_text(toml_content)

    cfg = load_config(path)
    assert cfg.input_path == tmp_path / "rec" / "run1.seq"
    assert cfg.output_dir == tmp_path / "frames"
    assert cfg.image_format == "tiff"
    assert cfg.frame_range == (100, math.inf)
    assert cfg.make_dir is True
    assert cfg.show is False
    assert cfg.normalization is Normalization.BIT_DEPTH
    assert cfg.workers == 4
    assert cfg.header_info == tmp_path / "frames" / "headerinfo.mat"


def test_load_yaml_with_absolute_paths():
    yaml_content = """
input: /data/run1.seq
range: ["-inf", 100]
strict_format: true
"""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(yaml_content)
        path = f.name

    try:
        cfg = load_config(path)
        assert cfg.input_path == Path("/data/run1.seq")
        assert cfg.output_dir is None
        assert cfg.frame_range == (-math.inf, 100)
        assert cfg.strict_format is True
        assert cfg.image_format == "png"
    finally:
        Path(path).unlink()


def test_load_json(tmp_path):
    path = tmp_path / "convert.json"
    path.write_text(json.dumps({"input": "a.seq", "format": "BMP"}))
    cfg = load_config(path)
    assert cfg.image_format == "bmp"
    assert cfg.frame_range is None


def test_empty_range_means_all_frames(tmp_path):
    path = tmp_path / "convert.toml"
    path.write_text('input = "a.seq"\nrange = []\n')
    cfg = load_config(path)
    assert cfg.frame_range is None


def test_missing_input(tmp_path):
    path = tmp_path / "convert.toml"
    path.write_text('output = "frames"\n')
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"image_format": "gif"},
        {"workers": 0},
        {"frame_range": (1, 2, 3)},
    ],
)
def test_config_validation(kwargs):
    with pytest.raises(ConfigError):
        ConvertConfig(input_path=Path("a.seq"), **kwargs)


def test_with_overrides_skips_none():
    cfg = ConvertConfig(input_path=Path("a.seq"), image_format="bmp")
    out = cfg.with_overrides(image_format=None, workers=3)
    assert out.image_format == "bmp"
    assert out.workers == 3
    assert cfg.with_overrides(show=None) is cfg


@pytest.mark.parametrize(
    "text,expected",
    [("inf", math.inf), ("-inf", -math.inf), ("12", 12), (5, 5), (None, None)],
)
def test_parse_bound(text, expected):
    assert parse_bound(text) == expected


@pytest.mark.parametrize("text", ["abc", "1.5", True])
def test_parse_bound_invalid(text):
    with pytest.raises(ConfigError):
        parse_bound(text)


def test_parse_normalization():
    assert parse_normalization("FIXED_255") is Normalization.FIXED_255
    with pytest.raises(ConfigError):
        parse_normalization("auto")


if __name__ == "__main__":
    pytest.main([__file__])
