import os

import pytest
import yaml

from distillery.config import Alias, Config, Provider, load_config, parse_alias

BASE_YAML = """\
path: /home/test/.distillery
cache_path: /home/test/.cache
aliases:
  dist: ekristen/distillery
  aws-nuke: ekristen/aws-nuke@3.29.3
providers:
  alpine:
    provider: gitlab
    base_url: https://gitlab.example.com
"""

BASE_TOML = """\
path = "/home/test/.distillery"
cache_path = "/home/test/.cache"

[aliases]
dist = "ekristen/distillery"

[aliases.aws-nuke]
name = "ekristen/aws-nuke"
version = "3.29.3"
"""

EXPECTED_ALIASES = {
    "dist": Alias(name="ekristen/distillery", version="latest"),
    "aws-nuke": Alias(name="ekristen/aws-nuke", version="3.29.3"),
}


def test_config_new_yaml(tmp_path):
    cfg_file = tmp_path / "base.yaml"
    cfg_file.write_text(BASE_YAML)
    cfg = load_config(cfg_file)
    assert cfg.path == "/home/test/.distillery"
    assert cfg.cache_path == "/home/test/.cache"
    assert cfg.aliases == EXPECTED_ALIASES
    assert cfg.providers == {
        "alpine": Provider(provider="gitlab", base_url="https://gitlab.example.com")
    }


def test_config_new_toml(tmp_path):
    cfg_file = tmp_path / "base.toml"
    cfg_file.write_text(BASE_TOML)
    cfg = load_config(cfg_file)
    assert cfg.path == "/home/test/.distillery"
    assert cfg.cache_path == "/home/test/.cache"
    assert cfg.aliases == EXPECTED_ALIASES


def test_toml_string_alias_keeps_at_sign(tmp_path):
    cfg_file = tmp_path / "c.toml"
    cfg_file.write_text('[aliases]\nx = "owner/repo@1.0"\n')
    cfg = load_config(cfg_file)
    assert cfg.get_alias("x") == Alias(name="owner/repo@1.0", version="latest")


def test_defaults_for_missing_file(tmp_path):
    cfg = load_config(tmp_path / "missing")
    assert cfg.language == "en"
    assert cfg.default_source == "github"
    assert cfg.path.endswith(".distillery")
    assert cfg.bin_path == os.path.join(cfg.path, "bin")
    assert cfg.cache_path != ""
    assert cfg.aliases is None


def test_unknown_suffix_raises(tmp_path):
    cfg_file = tmp_path / "config.ini"
    cfg_file.write_text("path = x\n")
    with pytest.raises(ValueError, match="unknown configuration file suffix"):
        load_config(cfg_file)


def test_invalid_yaml_raises(tmp_path):
    cfg_file = tmp_path / "bad.yaml"
    cfg_file.write_text("path: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        load_config(cfg_file)


def test_parse_alias_forms():
    assert parse_alias("a/b") == Alias(name="a/b", version="latest")
    assert parse_alias("a/b@2.0") == Alias(name="a/b", version="2.0")
    assert parse_alias({"name": "a/b", "version": "3", "flags": {"x": True}}) == Alias(
        name="a/b", version="3", flags={"x": True}
    )


def test_parse_alias_invalid():
    with pytest.raises(ValueError):
        parse_alias(42)


def test_paths():
    cfg = Config(path="/home/test/.distillery", cache_path="/cache")
    assert cfg.cache_dir() == "/cache/distillery"
    assert cfg.metadata_dir() == "/cache/distillery/metadata"
    assert cfg.downloads_dir() == "/cache/distillery/downloads"
    assert cfg.opt_dir() == "/home/test/.distillery/opt"


def test_get_alias():
    cfg = Config()
    assert cfg.get_alias("dist") is None
    cfg.aliases = dict(EXPECTED_ALIASES)
    assert cfg.get_alias("dist") == Alias(name="ekristen/distillery", version="latest")
    assert cfg.get_alias("nope") is None


def test_mkdir_all(tmp_path):
    cfg = Config(
        path=str(tmp_path / "home"),
        bin_path=str(tmp_path / "home" / "bin"),
        cache_path=str(tmp_path / "cache"),
    )
    cfg.mkdir_all()
    created = sorted(
        p.relative_to(tmp_path).as_posix() for p in tmp_path.rglob("*") if p.is_dir()
    )
    assert created == [
        "cache",
        "cache/distillery",
        "cache/distillery/downloads",
        "cache/distillery/metadata",
        "home",
        "home/bin",
        "home/opt",
    ]
    assert cfg.opt_dir() == (tmp_path / "home" / "opt").as_posix()