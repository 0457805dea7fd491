"""Vocabulary of the .sln text format (Format Version 11.00)."""

from __future__ import annotations

import os

from solgen.errors import UnrecognizedProjectType

HEADER_LINES = (
    "Microsoft Visual Studio Solution File, Format Version 11.00",
    "# Visual Studio 2010",
)
FOOTER_LINES = (
    "\tEndGlobalSection",
    "EndGlobal",
)

# Known project type GUIDs
CSHARP_GUID = "{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}"
VBNET_GUID = "{F184B08F-C81C-45F6-A57F-5ABD9991F28F}"
FSHARP_GUID = "{F2A71F9B-5D33-465A-A702-920D77279786}"
VCXPROJ_GUID = "{8BC9CEB8-8B4A-11D0-8D11-00A0C91BC942}"
SOLUTION_FOLDER_GUID = "{2150E333-8FDC-42A3-9474-1A3956D46DE8}"

PROJECT_TYPE_GUIDS = {
    ".csproj": CSHARP_GUID,
    ".vbproj": VBNET_GUID,
    ".fsproj": FSHARP_GUID,
    ".vcxproj": VCXPROJ_GUID,
}

MIXED_PLATFORMS = "Mixed Platforms"


def project_type_guid(project_path: str) -> str:
    """Return the solution type GUID for a project file, by extension."""
    ext = os.path.splitext(project_path)[1].lower()
    try:
        return PROJECT_TYPE_GUIDS[ext]
    except KeyError:
        raise UnrecognizedProjectType(
            f"No solution project type for '{ext or project_path}'", project_path
        ) from None


def format_project_entry(type_guid: str, name: str, path: str, identifier: str) -> list[str]:
    # Project("{TYPE-GUID}") = "Name", "Path\To\Project.csproj", "{PROJECT-GUID}"
    return [
        f'Project("{type_guid}") = "{name}", "{path}", "{identifier}"',
        "EndProject",
    ]


def solution_platform(configuration: str, project_platform: str) -> str:
    """Platform a project builds for under a solution configuration.

    ``Mixed Platforms`` defers to the project's own platform, and MSBuild's
    ``AnyCPU`` is spelt ``Any CPU`` in solution files. A project without a
    platform of its own is treated as ``AnyCPU``.
    """
    if configuration == MIXED_PLATFORMS:
        platform = project_platform or "AnyCPU"
    else:
        platform = configuration
    if platform == "AnyCPU":
        platform = "Any CPU"
    return platform
