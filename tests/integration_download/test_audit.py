"""Audit CSV layout and write failures."""

from __future__ import annotations

import logging

import pytest

from IntegrationDownload.audit import read_path_mappings, write_path_mappings
from IntegrationDownload.errors import AuditWriteError
from IntegrationDownload.models import PathMapping

MAPPINGS = [
    PathMapping(filename="a.csv", source_path="/r/a.csv", target_path="."),
    PathMapping(filename="b.csv", source_path="/r/b.csv", target_path="sub"),
    PathMapping(filename="c, d.csv", source_path="/r/c, d.csv", target_path="x/y"),
]


def test_three_column_layout_in_manifest_order(tmp_path):
    path = write_path_mappings(tmp_path / "file_paths.csv", MAPPINGS)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "filename,source_path,target_path"
    assert lines[1] == "a.csv,/r/a.csv,."
    assert lines[2] == "b.csv,/r/b.csv,sub"
    assert lines[3] == '"c, d.csv","/r/c, d.csv",x/y'
    assert read_path_mappings(path) == MAPPINGS


def test_empty_manifest_writes_header_only(tmp_path):
    path = write_path_mappings(tmp_path / "file_paths.csv", [])
    assert path.read_text(encoding="utf-8") == "filename,source_path,target_path\n"


def test_two_column_layout_is_deprecated(tmp_path):
    with pytest.warns(DeprecationWarning):
        path = write_path_mappings(
            tmp_path / "file_paths.csv", MAPPINGS[:2], audit_format="two_column"
        )
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == ["source_path,target_path", "/r/a.csv,.", "/r/b.csv,sub"]
    assert [m.filename for m in read_path_mappings(path)] == ["", ""]


def test_rewrite_replaces_previous_file(tmp_path):
    target = tmp_path / "file_paths.csv"
    write_path_mappings(target, MAPPINGS)
    write_path_mappings(target, MAPPINGS[:1])
    assert read_path_mappings(target) == MAPPINGS[:1]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["file_paths.csv"]


def test_unwritable_location_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(AuditWriteError):
        write_path_mappings(blocker / "file_paths.csv", MAPPINGS)


def test_write_is_logged(tmp_path, caplog, run_logger):
    caplog.set_level(logging.INFO)
    write_path_mappings(tmp_path / "file_paths.csv", MAPPINGS, logger=run_logger)
    record = next(r for r in caplog.records if r.message.startswith("audit CSV written"))
    assert record.rows == 3


def test_failed_replace_leaves_no_temporary_file(tmp_path):
    (tmp_path / "file_paths.csv").mkdir()
    with pytest.raises(AuditWriteError):
        write_path_mappings(tmp_path / "file_paths.csv", MAPPINGS)
    assert [p.name for p in tmp_path.iterdir()] == ["file_paths.csv"]
    assert (tmp_path / "file_paths.csv").is_dir()
