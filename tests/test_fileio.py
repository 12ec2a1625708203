"""Tests for build file I/O."""

import os
from unittest.mock import patch

import pytest

from common.fileio import build_files, read_text, write_atomic


class TestReadText:
    """Reading keeps bytes exact."""

    def test_crlf_is_preserved(self, tmp_path):
        path = tmp_path / "build.sbt"
        path.write_bytes(b'name := "demo"\r\n')
        assert read_text(str(path)) == 'name := "demo"\r\n'


class TestBuildFiles:
    """Discovery of the build definition files of a project."""

    def test_main_file_only(self, tmp_path):
        assert build_files(str(tmp_path), "build.sbt") == [str(tmp_path / "build.sbt")]

    def test_project_definitions_follow_main_file(self, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        for name in ("plugins.sbt", "Versions.scala", "Dependencies.scala", "build.properties"):
            (project / name).write_text("", encoding="utf-8")

        assert build_files(str(tmp_path), "build.sbt") == [
            str(tmp_path / "build.sbt"),
            str(project / "plugins.sbt"),
            str(project / "Dependencies.scala"),
            str(project / "Versions.scala"),
        ]


class TestWriteAtomic:
    """Atomic replacement with optional backup."""

    def test_writes_and_backs_up(self, tmp_path):
        path = tmp_path / "build.sbt"
        path.write_text("old\n", encoding="utf-8")

        backup = write_atomic(str(path), "new\n")

        assert path.read_text(encoding="utf-8") == "new\n"
        assert backup == str(path) + ".bak"
        assert (tmp_path / "build.sbt.bak").read_text(encoding="utf-8") == "old\n"

    def test_no_backup(self, tmp_path):
        path = tmp_path / "build.sbt"
        path.write_text("old\n", encoding="utf-8")

        assert write_atomic(str(path), "new\n", backup=False) is None
        assert not (tmp_path / "build.sbt.bak").exists()

    def test_no_temp_files_left_behind(self, tmp_path):
        path = tmp_path / "build.sbt"
        path.write_text("old\n", encoding="utf-8")
        write_atomic(str(path), "new\n", backup=False)
        assert sorted(os.listdir(tmp_path)) == ["build.sbt"]

    def test_failed_replace_keeps_original(self, tmp_path):
        path = tmp_path / "build.sbt"
        path.write_text("old\n", encoding="utf-8")

        with patch("common.fileio.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_atomic(str(path), "new\n", backup=False)

        assert path.read_text(encoding="utf-8") == "old\n"
        assert sorted(os.listdir(tmp_path)) == ["build.sbt"]
