"""Tests for Ant-style pattern matching and directory scanning."""
from __future__ import annotations

import pytest

from archsign.scan import compile_pattern, get_files, split_patterns


def _touch(root, *names):
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x")


class TestCompilePattern:
    def test_default_include_matches_any_archive_extension(self):
        pattern = compile_pattern("**/*.?ar")
        assert pattern.fullmatch("a.jar")
        assert pattern.fullmatch("lib/deep/b.war")
        assert pattern.fullmatch("c.ear")
        assert not pattern.fullmatch("c.txt")
        assert not pattern.fullmatch("c.tar.gz")

    def test_single_star_stays_in_segment(self):
        pattern = compile_pattern("lib/*.jar")
        assert pattern.fullmatch("lib/a.jar")
        assert not pattern.fullmatch("lib/sub/a.jar")

    def test_trailing_slash_means_everything_below(self):
        pattern = compile_pattern("build/")
        assert pattern.fullmatch("build/a.jar")
        assert pattern.fullmatch("build/x/y/a.jar")
        assert not pattern.fullmatch("other/a.jar")


class TestSplitPatterns:
    def test_comma_string(self):
        assert split_patterns("**/*.jar, **/*.war,,") == ["**/*.jar", "**/*.war"]

    def test_iterable_with_embedded_commas(self):
        assert split_patterns(["a/*.jar,b/*.jar", "c/"]) == ["a/*.jar", "b/*.jar", "c/"]

    def test_none(self):
        assert split_patterns(None) == []


class TestGetFiles:
    def test_default_includes_pick_archives_only(self, tmp_path):
        _touch(tmp_path, "a.jar", "b.war", "c.txt")
        found = get_files(tmp_path)
        assert [p.name for p in found] == ["a.jar", "b.war"]
        assert all(p.is_absolute() for p in found)

    def test_results_sorted_by_relative_path(self, tmp_path):
        _touch(tmp_path, "z.jar", "lib/b.jar", "lib/a.jar", "a.jar")
        found = get_files(tmp_path, "**/*.jar")
        rel = [p.relative_to(tmp_path).as_posix() for p in found]
        assert rel == ["a.jar", "lib/a.jar", "lib/b.jar", "z.jar"]

    def test_excludes_and_scm_defaults(self, tmp_path):
        _touch(tmp_path, "keep.jar", "skip/me.jar", ".git/objects/x.jar")
        found = get_files(tmp_path, "**/*.jar", "skip/**")
        assert [p.name for p in found] == ["keep.jar"]

    def test_scm_defaults_can_be_disabled(self, tmp_path):
        _touch(tmp_path, ".git/x.jar")
        assert get_files(tmp_path, "**/*.jar", add_default_excludes=False)

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_files(tmp_path / "nope")

    def test_file_root_raises(self, tmp_path):
        _touch(tmp_path, "a.jar")
        with pytest.raises(NotADirectoryError):
            get_files(tmp_path / "a.jar")
