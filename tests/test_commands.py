import logging
import os

import pytest

from distillery.commands import clean, find_orphaned_binaries, info_report
from distillery.config import Config


@pytest.fixture
def bin_dir(tmp_path):
    d = tmp_path / "bin"
    d.mkdir()
    (d / "orphan").write_bytes(b"\x7fELF")
    linked = d / "linked"
    linked.write_bytes(b"\x7fELF")
    os.symlink(str(linked), str(d / "app"))
    os.symlink(str(linked), str(d / "app@1.0.0"))
    return d


def test_find_orphaned_binaries_skips_link_targets(bin_dir):
    assert find_orphaned_binaries(bin_dir) == [os.path.join(str(bin_dir), "orphan")]


def test_find_orphaned_binaries_descends_into_directories(bin_dir):
    sub = bin_dir / "nested"
    sub.mkdir()
    (sub / "extra").write_text("x")
    result = find_orphaned_binaries(bin_dir)
    assert os.path.join(str(sub), "extra") in result
    assert len(result) == 2


def test_find_orphaned_binaries_missing_dir(tmp_path):
    assert find_orphaned_binaries(tmp_path / "missing") == []


def test_clean_dry_run_keeps_files(bin_dir, caplog):
    caplog.set_level(logging.WARNING)
    orphans = clean(bin_dir, dry_run=True)
    assert orphans == [os.path.join(str(bin_dir), "orphan")]
    assert (bin_dir / "orphan").exists()
    assert any("dry-run enabled" in r.getMessage() for r in caplog.records)


def test_clean_removes_orphans(bin_dir):
    orphans = clean(bin_dir, dry_run=False)
    assert orphans == [os.path.join(str(bin_dir), "orphan")]
    assert not (bin_dir / "orphan").exists()
    assert (bin_dir / "linked").exists()
    assert find_orphaned_binaries(bin_dir) == []


def _config():
    return Config(path="/home/test/.distillery", bin_path="/home/test/.distillery/bin",
                  cache_path="/home/test/.cache")


def test_info_report_bin_in_path():
    cfg = _config()
    lines = info_report(cfg, path_env=f"/usr/bin{os.pathsep}{cfg.bin_path}")
    texts = [text for _, text in lines]
    assert "  distillery/v1.0.0" in texts
    assert f"   home: {cfg.path}" in texts
    assert f"    bin: {cfg.bin_path}" in texts
    assert not any(t.startswith("Problem") for t in texts)


def test_info_report_bin_missing_from_path():
    cfg = _config()
    lines = info_report(cfg, path_env="/usr/bin")
    assert (logging.WARNING, f"  - {cfg.bin_path} is not in your PATH") in lines
    assert lines[-1] == (None, "")