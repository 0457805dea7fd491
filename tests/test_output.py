"""Tests for solution file serialisation."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import PureWindowsPath

import pytest

from solgen.config import NodeKind, SolutionNode, new_identifier
from solgen.dotnet.solution import (
    CSHARP_GUID,
    SOLUTION_FOLDER_GUID,
    VCXPROJ_GUID,
    project_type_guid,
    solution_platform,
)
from solgen.errors import OutputWriteError, RelativePathUnresolvable, UnrecognizedProjectType
from solgen.graph.solution_graph import SolutionGraph
from solgen.output import render_solution, write_solution

_ENTRY_RE = re.compile(r'^Project\("(\{[^}]+\})"\) = "([^"]+)", "([^"]+)", "(\{[^}]+\})"$')


def _entries(lines: list[str]) -> list[tuple[str, str, str, str]]:
    return [m.groups() for m in map(_ENTRY_RE.match, lines) if m]


def _section(lines: list[str], name: str) -> list[str]:
    start = next(i for i, line in enumerate(lines) if f"GlobalSection({name})" in line)
    end = lines.index("\tEndGlobalSection", start)
    return [line.strip() for line in lines[start + 1:end]]


class _GraphBuilder:
    """Hand-built graphs rooted at /work (or any prefix)."""

    def __init__(self) -> None:
        self.graph = SolutionGraph()

    def folder(self, directory: str, name: str, parent: SolutionNode | None = None) -> SolutionNode:
        node = SolutionNode(
            identifier=new_identifier(), name=name, directory=directory,
            kind=NodeKind.FOLDER, parent_id=parent.identifier if parent else None,
        )
        self.graph.add_node(node.path, node)
        return node

    def project(self, folder: SolutionNode, name: str, platform: str = "") -> SolutionNode:
        node = SolutionNode(
            identifier=new_identifier(), name=name, directory=folder.path,
            kind=NodeKind.PROJECT, parent_id=folder.identifier, platform=platform,
        )
        self.graph.add_node(node.path, node)
        return node


def _standard_graph():
    b = _GraphBuilder()
    work = b.folder("/", "work")
    app_dir = b.folder("/work", "app", work)
    lib_dir = b.folder("/work", "lib", work)
    app = b.project(app_dir, "App.csproj", platform="AnyCPU")
    lib = b.project(lib_dir, "Lib.csproj", platform="AnyCPU")
    return b.graph, work, app_dir, lib_dir, app, lib


class TestVocabulary:
    def test_type_guid_by_extension(self):
        assert project_type_guid("/x/App.csproj") == CSHARP_GUID
        assert project_type_guid("/x/NATIVE.VCXPROJ") == VCXPROJ_GUID

    def test_unknown_extension(self):
        with pytest.raises(UnrecognizedProjectType):
            project_type_guid("/x/build.proj")

    def test_platform_substitution(self):
        assert solution_platform("Mixed Platforms", "AnyCPU") == "Any CPU"
        assert solution_platform("Mixed Platforms", "x64") == "x64"
        assert solution_platform("Mixed Platforms", "") == "Any CPU"
        assert solution_platform("x86", "x64") == "x86"
        assert solution_platform("AnyCPU", "x64") == "Any CPU"


class TestRenderSolution:
    def test_header_and_footer(self):
        graph, *_ = _standard_graph()
        lines, _ = render_solution(graph, "/work", "/work/app/App.sln", ["x86"])

        assert lines[0] == "Microsoft Visual Studio Solution File, Format Version 11.00"
        assert lines[1] == "# Visual Studio 2010"
        assert lines[-2:] == ["\tEndGlobalSection", "EndGlobal"]
        assert lines.count("EndProject") == len(_entries(lines))

    def test_common_root_folder_is_elided(self):
        graph, work, app_dir, lib_dir, app, lib = _standard_graph()
        lines, skipped = render_solution(graph, "/work", "/work/app/App.sln", ["x86"])

        entries = _entries(lines)
        ids = {e[3] for e in entries}
        assert work.identifier not in ids
        assert ids == {app_dir.identifier, lib_dir.identifier, app.identifier, lib.identifier}
        assert skipped == []

    def test_project_and_folder_entries(self):
        graph, work, app_dir, lib_dir, app, lib = _standard_graph()
        lines, _ = render_solution(graph, "/work", "/work/app/App.sln", ["x86"])
        by_id = {e[3]: e for e in _entries(lines)}

        assert by_id[app.identifier] == (CSHARP_GUID, "App.csproj", "App.csproj", app.identifier)
        assert by_id[lib.identifier] == (CSHARP_GUID, "Lib.csproj", "..\\lib\\Lib.csproj", lib.identifier)
        assert by_id[app_dir.identifier] == (
            SOLUTION_FOLDER_GUID, "app", app_dir.identifier, app_dir.identifier,
        )

    def test_nesting_skips_children_of_common_root(self):
        graph, work, app_dir, lib_dir, app, lib = _standard_graph()
        lines, _ = render_solution(graph, "/work", "/work/app/App.sln", ["x86"])

        nested = _section(lines, "NestedProjects")
        assert sorted(nested) == sorted([
            f"{app.identifier} = {app_dir.identifier}",
            f"{lib.identifier} = {lib_dir.identifier}",
        ])

    def test_without_common_root_everything_nests(self):
        graph, work, app_dir, lib_dir, app, lib = _standard_graph()
        lines, _ = render_solution(graph, None, "/work/app/App.sln", ["x86"])

        assert work.identifier in {e[3] for e in _entries(lines)}
        nested = _section(lines, "NestedProjects")
        assert f"{app_dir.identifier} = {work.identifier}" in nested
        assert len(nested) == 4

    def test_configuration_declarations(self):
        graph, *_ = _standard_graph()
        lines, _ = render_solution(graph, "/work", "/work/App.sln", ["x86", "x64"])

        assert _section(lines, "SolutionConfigurationPlatforms") == [
            "Debug|x86 = Debug|x86",
            "Debug|x64 = Debug|x64",
            "Release|x86 = Release|x86",
            "Release|x64 = Release|x64",
        ]

    def test_default_configuration(self):
        graph, *_ = _standard_graph()
        lines, _ = render_solution(graph, "/work", "/work/App.sln", [])

        assert _section(lines, "SolutionConfigurationPlatforms") == [
            "Debug|Any CPU = Debug|Any CPU",
            "Release|Any CPU = Release|Any CPU",
        ]

    def test_build_matrix_completeness(self):
        b = _GraphBuilder()
        work = b.folder("/", "work")
        for i in range(3):
            b.project(b.folder("/work", f"p{i}", work), f"P{i}.csproj")
        configs = ["x86", "x64"]

        lines, _ = render_solution(b.graph, "/work", "/work/All.sln", configs)
        matrix = _section(lines, "ProjectConfigurationPlatforms")

        assert sum(".ActiveCfg = " in line for line in matrix) == 3 * 2 * 2
        assert sum(".Build.0 = " in line for line in matrix) == 3 * 2 * 2

    def test_mixed_platforms_uses_project_platform(self):
        graph, work, app_dir, lib_dir, app, lib = _standard_graph()
        lines, _ = render_solution(graph, "/work", "/work/App.sln", ["Mixed Platforms"])
        matrix = _section(lines, "ProjectConfigurationPlatforms")

        assert f"{app.identifier}.Debug|Mixed Platforms.ActiveCfg = Debug|Any CPU" in matrix
        assert f"{app.identifier}.Release|Mixed Platforms.Build.0 = Release|Any CPU" in matrix

    def test_unrecognized_type_is_skipped(self):
        b = _GraphBuilder()
        work = b.folder("/", "work")
        tools = b.folder("/work", "tools", work)
        known = b.project(tools, "Tool.csproj")
        unknown = b.project(tools, "build.proj")

        lines, skipped = render_solution(b.graph, "/work", "/work/All.sln", ["x86"])

        assert [type(e) for e in skipped] == [UnrecognizedProjectType]
        text = "\n".join(lines)
        assert unknown.identifier not in text
        assert known.identifier in text
        assert tools.identifier in {e[3] for e in _entries(lines)}

    def test_other_volume_is_skipped(self):
        b = _GraphBuilder()
        src = b.folder("C:\\", "src")
        app = b.project(src, "App.csproj")
        other = b.folder("D:\\", "other")
        far = b.project(other, "Far.csproj")

        lines, skipped = render_solution(
            b.graph, None, "C:\\src\\App.sln", ["x86"], flavour=PureWindowsPath
        )

        assert len(skipped) == 1
        assert isinstance(skipped[0], RelativePathUnresolvable)
        ids = {e[3] for e in _entries(lines)}
        assert far.identifier not in ids
        assert {app.identifier, src.identifier, other.identifier} <= ids
        assert far.identifier not in "\n".join(lines)
        by_id = {e[3]: e for e in _entries(lines)}
        assert by_id[app.identifier][2] == "App.csproj"


class TestWriteSolution:
    def test_writes_crlf_file(self):
        graph, *_ = _standard_graph()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "out", "App.sln")
            skipped = write_solution(graph, "/work", path, ["x86"])

            assert skipped == []
            with open(path, "rb") as f:
                data = f.read()
            assert data.startswith(b"Microsoft Visual Studio Solution File")
            assert b"\r\nEndGlobal\r\n" in data

    def test_write_failure_is_fatal(self):
        graph, *_ = _standard_graph()
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = os.path.join(tmpdir, "file")
            with open(blocker, "w") as f:
                f.write("x")
            with pytest.raises(OutputWriteError) as exc:
                write_solution(graph, "/work", os.path.join(blocker, "App.sln"), ["x86"])
            assert isinstance(exc.value.__cause__, OSError)
