"""Shared test fixtures building small in-memory build graphs."""

import copy
import json
from pathlib import Path
from typing import Callable

import pytest

from ninjaxcode.config import Options
from ninjaxcode.details.graph import (
    BuildGraph,
    BuildSettings,
    BundleData,
    Label,
    OutputType,
    Target,
    Tool,
    Toolchain,
)
from ninjaxcode.generators.xcode.model import ProductType

DEFAULT_TOOLCHAIN = Label.parse("//build/toolchain:clang")


@pytest.fixture()
def toolchain() -> Toolchain:
    return Toolchain(
        DEFAULT_TOOLCHAIN,
        {"link": Tool("link", "{{root_out_dir}}")},
    )


@pytest.fixture()
def make_target(toolchain: Toolchain) -> Callable[..., Target]:
    """Factory creating targets in the default toolchain unless told otherwise."""

    def factory(label: str, output_type: OutputType, **kwargs) -> Target:
        parsed = Label.parse(label, DEFAULT_TOOLCHAIN)
        kwargs.setdefault("toolchain", toolchain)
        kwargs.setdefault("is_default_toolchain", parsed.toolchain == DEFAULT_TOOLCHAIN)
        return Target(label=parsed, output_type=output_type, **kwargs)

    return factory


@pytest.fixture()
def make_bundle(make_target: Callable[..., Target]) -> Callable[..., Target]:
    """Factory creating create_bundle targets producing "<name>.<ext>"."""

    def factory(
        label: str,
        product_type: ProductType,
        extension: str = "app",
        test_application: str = "",
        **kwargs,
    ) -> Target:
        name = Label.parse(label).name
        bundle_data = BundleData(
            product_type=product_type.value,
            root_dir_output=f"//out/Debug/{name}.{extension}",
            bundle_dir="//out/Debug/",
            xcode_test_application_name=test_application,
        )
        return make_target(
            label, OutputType.CREATE_BUNDLE, bundle_data=bundle_data, **kwargs
        )

    return factory


@pytest.fixture()
def build_settings(tmp_path: Path) -> BuildSettings:
    return BuildSettings(root_path=tmp_path, build_dir="//out/Debug/")


@pytest.fixture()
def options() -> Options:
    return Options(project_name="products", root_target_name="gn_all")


@pytest.fixture()
def sample_graph(make_target, make_bundle) -> BuildGraph:
    """
    An application with unit tests and a command line tool.

    //base is shared by the application and the tool.
    """
    base = make_target(
        "//base:base",
        OutputType.STATIC_LIBRARY,
        sources=["//base/strings.cc", "//base/strings.h", "//base/strings_xctest.mm"],
    )
    app_lib = make_target(
        "//app:lib",
        OutputType.SOURCE_SET,
        sources=["//app/app_delegate.mm", "//app/app_delegate.h"],
        public_deps=[base],
    )
    app = make_bundle("//app:app", ProductType.APPLICATION, private_deps=[app_lib])
    tests = make_bundle(
        "//app:app_tests_module",
        ProductType.UNIT_TEST_BUNDLE,
        extension="xctest",
        test_application="app",
    )
    tool = make_target(
        "//tools:tool",
        OutputType.EXECUTABLE,
        sources=["//tools/main.cc"],
        private_deps=[base],
    )
    return BuildGraph([tool, tests, app, app_lib, base], ["//.gn", "//build/config.gni"])


GRAPH_DESCRIPTION = {
    "build_dir": "//out/Debug/",
    "default_toolchain": "//build/toolchain:clang",
    "toolchains": {
        "//build/toolchain:clang": {
            "tools": {"link": {"default_output_dir": "{{root_out_dir}}"}}
        }
    },
    "build_files": ["//.gn", "//build/config/BUILDCONFIG.gn"],
    "targets": {
        "//app:app": {
            "type": "executable",
            "sources": ["//app/main.cc"],
            "deps": ["//base:base"],
        },
        "//base:base": {
            "type": "static_library",
            "sources": ["//base/strings.cc", "//base/strings.h"],
            "public": ["//base/strings.h"],
        },
        "//tools:gen(//build/toolchain:host)": {"type": "executable"},
    },
}


@pytest.fixture()
def write_graph(tmp_path: Path) -> Callable[..., Path]:
    """Write a graph description under tmp_path, GRAPH_DESCRIPTION by default."""

    def writer(description=None, name: str = "graph.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(GRAPH_DESCRIPTION if description is None else description))
        return path

    return writer


@pytest.fixture()
def graph_description() -> dict:
    return copy.deepcopy(GRAPH_DESCRIPTION)
