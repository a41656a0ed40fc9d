"""End to end tests of the Xcode project writer."""

import os

import pytest

from ninjaxcode.config import Options
from ninjaxcode.details.graph import BuildGraph
from ninjaxcode.errors import GraphConsistencyError
from ninjaxcode.generators.xcode import XcodeWriter, generate_xcode_project
from ninjaxcode.generators.xcode.model import ProductType
from ninjaxcode.generators.xcode.validator import (
    find_id_collisions,
    validate_references,
)

PROJECT_FILE = "//out/Debug/products.xcodeproj/project.pbxproj"
WORKSPACE_DATA = "//out/Debug/products.xcodeproj/project.xcworkspace/contents.xcworkspacedata"
WORKSPACE_SETTINGS = (
    "//out/Debug/products.xcodeproj/project.xcworkspace/xcshareddata/"
    "WorkspaceSettings.xcsettings"
)


class TestGenerateProject:
    def test_references_are_valid(self, options, build_settings, sample_graph) -> None:
        project = generate_xcode_project(options, build_settings, sample_graph, environ={})
        assert validate_references(project) == []
        assert find_id_collisions(project) == {}


class TestRender:
    def test_files(self, options, build_settings, sample_graph) -> None:
        files = XcodeWriter(options, build_settings, sample_graph, environ={}).render()
        assert list(files) == [PROJECT_FILE, WORKSPACE_DATA, WORKSPACE_SETTINGS]
        assert files[PROJECT_FILE].startswith("// !$*UTF8*$!\n")
        assert "BuildSystemType" in files[WORKSPACE_SETTINGS]

    def test_deterministic(self, options, build_settings, sample_graph) -> None:
        first = XcodeWriter(options, build_settings, sample_graph, environ={}).render()
        second = XcodeWriter(options, build_settings, sample_graph, environ={}).render()
        assert first == second

    def test_environment_captured(self, options, build_settings, sample_graph) -> None:
        environ = {"HOME": "/Users/dev", "SECRET": "hunter2"}
        files = XcodeWriter(options, build_settings, sample_graph, environ=environ).render()
        assert "environ['HOME'] = '/Users/dev'" in files[PROJECT_FILE]
        assert "hunter2" not in files[PROJECT_FILE]

    def test_project_name_changes_ids(self, build_settings, sample_graph) -> None:
        first = XcodeWriter(
            Options(project_name="a"), build_settings, sample_graph, environ={}
        ).render()
        second = XcodeWriter(
            Options(project_name="b"), build_settings, sample_graph, environ={}
        ).render()
        assert "//out/Debug/a.xcodeproj/project.pbxproj" in first
        assert (
            first["//out/Debug/a.xcodeproj/project.pbxproj"]
            != second["//out/Debug/b.xcodeproj/project.pbxproj"]
        )


class TestWrite:
    def test_writes_under_build_dir(self, tmp_path, options, build_settings, sample_graph) -> None:
        written = XcodeWriter(options, build_settings, sample_graph, environ={})()
        assert written == [PROJECT_FILE, WORKSPACE_DATA, WORKSPACE_SETTINGS]
        project_file = tmp_path / "out" / "Debug" / "products.xcodeproj" / "project.pbxproj"
        assert project_file.read_text().endswith("/* Project object */;\n}\n")

    def test_idempotent(self, tmp_path, options, build_settings, sample_graph) -> None:
        XcodeWriter(options, build_settings, sample_graph, environ={})()
        project_file = tmp_path / "out" / "Debug" / "products.xcodeproj" / "project.pbxproj"
        os.utime(project_file, (1000, 1000))

        written = XcodeWriter(options, build_settings, sample_graph, environ={})()
        assert written == []
        assert project_file.stat().st_mtime == 1000

    def test_only_changed_files_written(self, options, build_settings, sample_graph) -> None:
        XcodeWriter(options, build_settings, sample_graph, environ={})()
        written = XcodeWriter(
            options, build_settings, sample_graph, environ={"USER": "someone"}
        )()
        assert written == [PROJECT_FILE]

    def test_nothing_written_on_failure(self, tmp_path, options, build_settings, make_bundle) -> None:
        module = make_bundle(
            "//t:foo_module",
            ProductType.UNIT_TEST_BUNDLE,
            extension="xctest",
            test_application="foo_host",
        )
        writer = XcodeWriter(options, build_settings, BuildGraph([module]), environ={})
        with pytest.raises(GraphConsistencyError, match="foo_module"):
            writer()
        assert not (tmp_path / "out").exists()
