"""Evaluate .csproj/.vbproj/.fsproj/.vcxproj files (XML with MSBuild schema).

A small evaluator: properties are evaluated in
document order (following local <Import> elements), conditions support the
common comparison and function forms, and only the item types that link
projects together are collected.
"""

from __future__ import annotations

import glob
import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import Protocol, runtime_checkable

from solgen.config import ProjectModel, format_identifier
from solgen.errors import ProjectEvaluationError

logger = logging.getLogger(__name__)

REFERENCE_ITEM_TYPES = ("ProjectReference", "ProjectFile")

_PROPERTY_RE = re.compile(r"\$\(\s*([A-Za-z_][\w.-]*)\s*\)")
_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<string>'[^']*')"
    r"|(?P<op>==|!=|<=|>=|<|>)"
    r"|(?P<punct>[(),!])"
    r"|(?P<prop>\$\([^)]*\))"
    r"|(?P<word>[A-Za-z_][\w.]*|-?\d+(?:\.\d+)?)"
    r")"
)
_MAX_IMPORT_DEPTH = 16


@runtime_checkable
class ProjectModelProvider(Protocol):
    """Protocol for anything that can evaluate a project file."""

    def evaluate(self, path: str) -> ProjectModel:
        """Return the evaluated model, or raise ProjectEvaluationError."""
        ...


def _local(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _is_true(value: str) -> bool:
    return value.strip().lower() in ("true", "on", "yes")


class ConditionError(ValueError):
    pass


class _ConditionParser:
    """Recursive-descent evaluator for MSBuild Condition attributes."""

    def __init__(self, text: str, expand, base_dir: str) -> None:
        self.tokens = self._tokenize(text)
        self.pos = 0
        self.expand = expand
        self.base_dir = base_dir

    @staticmethod
    def _tokenize(text: str) -> list[tuple[str, str]]:
        tokens = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            match = _TOKEN_RE.match(text, pos)
            if match is None or match.end() == pos:
                raise ConditionError(f"Unexpected input at {pos}: {text[pos:]!r}")
            kind = match.lastgroup
            value = match.group(kind)
            if kind == "word" and value.lower() in ("and", "or"):
                kind = value.lower()
            tokens.append((kind, value))
            pos = match.end()
        return tokens

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self, kind: str | None = None, value: str | None = None) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise ConditionError("Unexpected end of condition")
        if (kind and token[0] != kind) or (value and token[1] != value):
            raise ConditionError(f"Expected {value or kind}, got {token[1]!r}")
        self.pos += 1
        return token

    def evaluate(self) -> bool:
        result = self._or()
        if self._peek() is not None:
            raise ConditionError(f"Trailing input: {self._peek()[1]!r}")
        return result

    def _or(self) -> bool:
        result = self._and()
        while self._peek() and self._peek()[0] == "or":
            self._take("or")
            rhs = self._and()
            result = result or rhs
        return result

    def _and(self) -> bool:
        result = self._unary()
        while self._peek() and self._peek()[0] == "and":
            self._take("and")
            rhs = self._unary()
            result = result and rhs
        return result

    def _unary(self) -> bool:
        token = self._peek()
        if token and token == ("punct", "!"):
            self._take()
            return not self._unary()
        if token and token == ("punct", "("):
            self._take()
            result = self._or()
            self._take("punct", ")")
            return result
        return self._comparison()

    def _comparison(self) -> bool:
        lhs = self._operand()
        token = self._peek()
        if token is None or token[0] != "op":
            if isinstance(lhs, bool):
                return lhs
            return _is_true(lhs)
        op = self._take("op")[1]
        rhs = self._operand()
        lhs, rhs = str(lhs), str(rhs)
        if op == "==":
            return lhs.lower() == rhs.lower()
        if op == "!=":
            return lhs.lower() != rhs.lower()
        try:
            left, right = float(lhs), float(rhs)
        except ValueError as e:
            raise ConditionError(f"Cannot compare {lhs!r} {op} {rhs!r}") from e
        return {
            "<": left < right,
            ">": left > right,
            "<=": left <= right,
            ">=": left >= right,
        }[op]

    def _operand(self) -> str | bool:
        kind, value = self._take()
        if kind == "string":
            return self.expand(value[1:-1])
        if kind == "prop":
            return self.expand(value)
        if kind == "word":
            nxt = self._peek()
            if nxt == ("punct", "("):
                return self._function(value)
            return value
        raise ConditionError(f"Unexpected token {value!r}")

    def _function(self, name: str) -> bool:
        self._take("punct", "(")
        arg = self._operand()
        self._take("punct", ")")
        arg = str(arg)
        lowered = name.lower()
        if lowered == "exists":
            if not arg.strip():
                return False
            candidate = os.path.join(self.base_dir, arg.strip().replace("\\", "/"))
            return os.path.exists(candidate)
        if lowered == "hastrailingslash":
            return arg.endswith(("/", "\\"))
        raise ConditionError(f"Unsupported function {name}")


class MSBuildProjectProvider:
    """Evaluate MSBuild project files into ProjectModel instances.

    ``global_properties`` behave like MSBuild global properties: they are
    visible everywhere and cannot be overridden by the project.
    """

    def __init__(self, global_properties: dict[str, str] | None = None) -> None:
        self.global_properties = dict(global_properties or {})

    def evaluate(self, path: str) -> ProjectModel:
        path = os.path.abspath(path)
        if not os.path.isfile(path):
            raise ProjectEvaluationError(f"Project file not found: {path}", path)

        project_dir = os.path.dirname(path)
        properties: dict[str, str] = {
            "MSBuildProjectDirectory": project_dir,
            "MSBuildProjectFullPath": path,
            "MSBuildProjectFile": os.path.basename(path),
            "MSBuildProjectName": os.path.splitext(os.path.basename(path))[0],
            "MSBuildProjectExtension": os.path.splitext(path)[1],
        }
        properties.update(self.global_properties)

        item_groups: list[tuple[ET.Element, dict[str, str]]] = []
        self._evaluate_file(path, properties, item_groups, project_dir, set(), 0)

        references: list[str] = []
        for group, file_properties in item_groups:
            # Items see final property values, but MSBuildThisFile* of their own file
            scoped = {**properties, **file_properties}
            if not self._condition(group, scoped, project_dir):
                continue
            for item in group:
                if not isinstance(item.tag, str) or _local(item.tag) not in REFERENCE_ITEM_TYPES:
                    continue
                if not self._condition(item, scoped, project_dir):
                    continue
                include = self._expand(item.get("Include", ""), scoped)
                references.extend(self._split_include(include, project_dir))

        identifier = None
        raw_guid = properties.get("ProjectGuid", "")
        if raw_guid:
            identifier = format_identifier(raw_guid)
            if identifier is None:
                logger.warning(f"Ignoring malformed ProjectGuid {raw_guid!r} in {path}")

        return ProjectModel(
            path=path,
            identifier=identifier,
            platform=properties.get("Platform") or None,
            references=tuple(references),
        )

    # --- Document walking ---

    def _evaluate_file(
        self,
        file_path: str,
        properties: dict[str, str],
        item_groups: list[tuple[ET.Element, dict[str, str]]],
        project_dir: str,
        seen: set[str],
        depth: int,
    ) -> None:
        root = self._load(file_path, is_import=depth > 0)
        if root is None:
            return
        seen.add(os.path.normcase(file_path))

        file_dir = os.path.dirname(file_path)
        properties["MSBuildThisFileDirectory"] = file_dir + os.sep
        properties["MSBuildThisFile"] = os.path.basename(file_path)

        for element in root:
            tag = _local(element.tag)
            if tag == "PropertyGroup":
                if self._condition(element, properties, project_dir):
                    self._evaluate_properties(element, properties, project_dir)
            elif tag == "ItemGroup":
                item_groups.append((element, {
                    "MSBuildThisFileDirectory": file_dir + os.sep,
                    "MSBuildThisFile": os.path.basename(file_path),
                }))
            elif tag in ("Import", "ImportGroup"):
                if not self._condition(element, properties, project_dir):
                    continue
                if depth >= _MAX_IMPORT_DEPTH:
                    logger.warning(f"Import depth exceeded in {file_path}")
                    continue
                imports = [element] if tag == "Import" else [
                    child for child in element
                    if isinstance(child.tag, str) and _local(child.tag) == "Import"
                    and self._condition(child, properties, project_dir)
                ]
                for imp in imports:
                    for imported in self._resolve_import(imp, properties, file_dir):
                        if os.path.normcase(imported) in seen:
                            continue
                        self._evaluate_file(
                            imported, properties, item_groups, project_dir, seen, depth + 1
                        )
                # Restore this file's reserved properties after the import returns
                properties["MSBuildThisFileDirectory"] = file_dir + os.sep
                properties["MSBuildThisFile"] = os.path.basename(file_path)

    def _load(self, file_path: str, is_import: bool) -> ET.Element | None:
        try:
            tree = ET.parse(file_path)
        except ET.ParseError as e:
            if is_import:
                logger.warning(f"Skipping malformed import {file_path}: {e}")
                return None
            raise ProjectEvaluationError(f"Malformed project file {file_path}: {e}", file_path) from e
        except OSError as e:
            if is_import:
                logger.warning(f"Skipping unreadable import {file_path}: {e}")
                return None
            raise ProjectEvaluationError(f"Cannot read project file {file_path}: {e}", file_path) from e

        root = tree.getroot()
        if _local(root.tag) != "Project":
            if is_import:
                logger.warning(f"Skipping import without <Project> root: {file_path}")
                return None
            raise ProjectEvaluationError(
                f"Unsupported project format in {file_path}: root element is <{_local(root.tag)}>",
                file_path,
            )
        return root

    def _resolve_import(
        self, element: ET.Element, properties: dict[str, str], file_dir: str
    ) -> list[str]:
        """Resolve an <Import> to existing local files; missing imports are ignored."""
        target = self._expand(element.get("Project", ""), properties).strip()
        if not target:
            return []
        candidate = os.path.join(file_dir, target.replace("\\", "/"))
        if any(ch in candidate for ch in "*?"):
            return sorted(glob.glob(candidate))
        if os.path.isfile(candidate):
            return [os.path.abspath(candidate)]
        logger.debug(f"Ignoring missing import {target}")
        return []

    def _evaluate_properties(
        self, group: ET.Element, properties: dict[str, str], project_dir: str
    ) -> None:
        for prop in group:
            if not isinstance(prop.tag, str):
                continue
            name = _local(prop.tag)
            if name in self.global_properties:
                continue
            if not self._condition(prop, properties, project_dir):
                continue
            properties[name] = self._expand((prop.text or "").strip(), properties)

    # --- Expressions ---

    def _expand(self, text: str, properties: dict[str, str]) -> str:
        def lookup(match: re.Match) -> str:
            name = match.group(1)
            if name in properties:
                return properties[name]
            return os.environ.get(name, "")

        return _PROPERTY_RE.sub(lookup, text)

    def _condition(
        self, element: ET.Element, properties: dict[str, str], project_dir: str
    ) -> bool:
        text = element.get("Condition")
        if text is None or not text.strip():
            return True
        parser = _ConditionParser(text, lambda s: self._expand(s, properties), project_dir)
        try:
            return parser.evaluate()
        except ConditionError as e:
            logger.debug(f"Treating unsupported condition {text!r} as false: {e}")
            return False

    @staticmethod
    def _split_include(include: str, project_dir: str) -> list[str]:
        results = []
        for part in include.split(";"):
            part = part.strip()
            if not part:
                continue
            # Normalise path separators
            part = part.replace("\\", "/")
            if any(ch in part for ch in "*?"):
                matches = sorted(glob.glob(os.path.join(project_dir, part), recursive=True))
                results.extend(os.path.relpath(m, project_dir).replace("\\", "/") for m in matches)
            else:
                results.append(part)
        return results
