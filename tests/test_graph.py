"""Tests for ninjaxcode.details.graph."""

from pathlib import Path

import pytest

from ninjaxcode.details.graph import (
    BuildGraph,
    BuildSettings,
    DependencyTracker,
    Label,
    OutputType,
)
from ninjaxcode.errors import PathResolutionError


class TestLabel:
    def test_parse_explicit_name(self) -> None:
        label = Label.parse("//foo/bar:baz")
        assert label.dir == "//foo/bar/"
        assert label.name == "baz"
        assert label.toolchain is None

    def test_parse_implicit_name(self) -> None:
        label = Label.parse("//foo/bar")
        assert label.dir == "//foo/bar/"
        assert label.name == "bar"

    def test_parse_root_dir(self) -> None:
        label = Label.parse("//:root")
        assert label.dir == "//"
        assert label.user_visible_name() == "//:root"

    def test_parse_toolchain(self) -> None:
        label = Label.parse("//foo:bar(//build/toolchain:host)")
        assert label.toolchain == Label.parse("//build/toolchain:host")
        assert str(label) == "//foo:bar(//build/toolchain:host)"
        assert label.user_visible_name() == "//foo:bar"

    def test_default_toolchain(self) -> None:
        toolchain = Label.parse("//tc:clang")
        assert Label.parse("//foo:bar", toolchain).toolchain == toolchain

    def test_explicit_toolchain_wins(self) -> None:
        label = Label.parse("//foo:bar(//tc:host)", Label.parse("//tc:clang"))
        assert label.toolchain == Label.parse("//tc:host")

    @pytest.mark.parametrize("value", ["foo:bar", "//foo:", "//foo:bar(//tc:x"])
    def test_parse_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            Label.parse(value)

    def test_ordering(self) -> None:
        labels = [Label.parse("//b:a"), Label.parse("//a:b"), Label.parse("//a:a")]
        assert [str(label) for label in sorted(labels)] == ["//a:a", "//a:b", "//b:a"]


class TestTarget:
    def test_linked_deps_order(self, make_target) -> None:
        a = make_target("//a", OutputType.SOURCE_SET)
        b = make_target("//b", OutputType.SOURCE_SET)
        c = make_target("//c", OutputType.SOURCE_SET)
        target = make_target(
            "//t", OutputType.EXECUTABLE, public_deps=[b], private_deps=[a], data_deps=[c]
        )
        assert list(target.linked_deps()) == [b, a]

    def test_default_build_file(self, make_target) -> None:
        target = make_target("//foo/bar:baz", OutputType.GROUP)
        assert target.build_file == "//foo/bar/BUILD.gn"
        assert target.name == "baz"


class TestBuildSettings:
    def test_trailing_slash(self) -> None:
        settings = BuildSettings(root_path=Path("/src"), build_dir="//out/Debug")
        assert settings.build_dir == "//out/Debug/"

    def test_build_dir_must_be_source_absolute(self) -> None:
        with pytest.raises(PathResolutionError):
            BuildSettings(root_path=Path("/src"), build_dir="out/Debug/")

    def test_full_path(self) -> None:
        settings = BuildSettings(root_path=Path("/src"), build_dir="//out/Debug/")
        assert settings.get_full_path("//out/Debug/a.txt") == Path("/src/out/Debug/a.txt")


class TestDependencyTracker:
    def test_files_are_unique(self) -> None:
        tracker = DependencyTracker([Path("/src/a.gni")])
        tracker.add(Path("/src/a.gni"))
        tracker.add(Path("/src/b.gni"))
        assert tracker.files == [Path("/src/a.gni"), Path("/src/b.gni")]


class TestBuildGraph:
    def test_find(self, make_target) -> None:
        target = make_target("//foo:bar", OutputType.GROUP)
        graph = BuildGraph([target])
        assert graph.find(target.label) is target
        assert graph.find(Label.parse("//foo:baz")) is None
