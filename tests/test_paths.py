"""Tests for path helpers."""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath

from solgen.paths import is_within, relative_path, same_path


class TestIsWithin:
    def test_descendant_and_equal(self):
        assert is_within("/a/b/c", "/a/b", PurePosixPath)
        assert is_within("/a/b", "/a/b", PurePosixPath)
        assert not is_within("/a", "/a/b", PurePosixPath)

    def test_segment_boundary(self):
        # "/a/bc" shares a string prefix with "/a/b" but is not inside it
        assert not is_within("/a/bc", "/a/b", PurePosixPath)

    def test_case_insensitive(self):
        assert is_within(r"C:\Src\App", r"c:\src", PureWindowsPath)
        assert same_path(r"C:\Src", r"c:\SRC", PureWindowsPath)


class TestRelativePath:
    def test_descendant_is_plain_suffix(self):
        assert relative_path("/work/sln", "/work/sln/app/App.csproj", PurePosixPath) == "app\\App.csproj"

    def test_sibling_walks_up(self):
        assert relative_path("/work/sln", "/work/lib/Lib.csproj", PurePosixPath) == "..\\lib\\Lib.csproj"

    def test_distant_branch(self):
        result = relative_path("/a/b/out", "/a/c/d/P.csproj", PurePosixPath)
        assert result == "..\\..\\c\\d\\P.csproj"

    def test_case_insensitive_common_run(self):
        result = relative_path(r"C:\Src\Out", r"c:\src\lib\L.csproj", PureWindowsPath)
        assert result == "..\\lib\\L.csproj"

    def test_descendant_keeps_target_case(self):
        result = relative_path(r"C:\Src", r"c:\SRC\App\App.csproj", PureWindowsPath)
        assert result == "App\\App.csproj"

    def test_different_drives(self):
        assert relative_path(r"C:\src", r"D:\other\Far.csproj", PureWindowsPath) is None
