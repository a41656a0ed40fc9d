"""Tests for loading a build graph from its JSON description."""

import pytest

from ninjaxcode.details.graph import Label, OutputType
from ninjaxcode.details.graph_loader import load_build_graph
from ninjaxcode.errors import ConfigurationError, GraphConsistencyError


class TestLoadBuildGraph:
    def test_settings(self, tmp_path, write_graph) -> None:
        build_settings, _, _ = load_build_graph(write_graph())
        assert build_settings.root_path == tmp_path.resolve()
        assert build_settings.build_dir == "//out/Debug/"
        assert build_settings.target_os is None

    def test_explicit_root(self, tmp_path, write_graph) -> None:
        root = tmp_path / "src"
        build_settings, _, _ = load_build_graph(write_graph(), root)
        assert build_settings.root_path == root.resolve()

    def test_relative_root(self, tmp_path, write_graph, graph_description) -> None:
        (tmp_path / "out").mkdir()
        graph_description["root_path"] = ".."
        build_settings, _, _ = load_build_graph(
            write_graph(graph_description, "out/graph.json")
        )
        assert build_settings.root_path == tmp_path.resolve()

    def test_targets(self, write_graph) -> None:
        _, graph, _ = load_build_graph(write_graph())
        assert [str(t.label) for t in graph.targets] == [
            "//app:app(//build/toolchain:clang)",
            "//base:base(//build/toolchain:clang)",
            "//tools:gen(//build/toolchain:host)",
        ]
        app, base, gen = graph.targets
        assert app.output_type is OutputType.EXECUTABLE
        assert app.private_deps == [base]
        assert base.public_headers == ["//base/strings.h"]
        assert app.toolchain.get_tool("link").default_output_dir == "{{root_out_dir}}"
        assert app.is_default_toolchain
        assert not gen.is_default_toolchain
        assert gen.toolchain.label == Label.parse("//build/toolchain:host")
        assert gen.toolchain.get_tool("link") is None
        assert graph.build_files == ["//.gn", "//build/config/BUILDCONFIG.gn"]

    def test_bundle_data(self, write_graph, graph_description) -> None:
        graph_description["targets"]["//app:bundle"] = {
            "type": "create_bundle",
            "bundle_data": {
                "product_type": "com.apple.product-type.application",
                "root_dir_output": "//out/Debug/App.app",
                "bundle_dir": "//out/Debug/",
                "xcode_extra_attributes": {"DEVELOPMENT_TEAM": "ABCDE"},
            },
        }
        _, graph, _ = load_build_graph(write_graph(graph_description))
        bundle = graph.targets[-1]
        assert bundle.bundle_data.root_dir_output == "//out/Debug/App.app"
        assert bundle.bundle_data.xcode_extra_attributes == {"DEVELOPMENT_TEAM": "ABCDE"}
        assert bundle.bundle_data.xcode_test_application_name == ""

    def test_tracker(self, tmp_path, write_graph, graph_description) -> None:
        dependency = tmp_path / "build" / "config.gni"
        graph_description["gen_dependencies"] = [str(dependency)]
        path = write_graph(graph_description)
        _, _, tracker = load_build_graph(path)
        assert tracker.files == [path.resolve(), dependency]


class TestLoadErrors:
    def test_unknown_dependency(self, write_graph, graph_description) -> None:
        graph_description["targets"]["//app:app"]["deps"] = ["//missing:missing"]
        with pytest.raises(GraphConsistencyError, match="unknown dependency //missing:missing"):
            load_build_graph(write_graph(graph_description))

    def test_cycle(self, write_graph, graph_description) -> None:
        graph_description["targets"]["//base:base"]["deps"] = ["//app:app"]
        with pytest.raises(GraphConsistencyError, match="dependency cycle"):
            load_build_graph(write_graph(graph_description))

    def test_invalid_type(self, write_graph, graph_description) -> None:
        graph_description["targets"]["//app:app"]["type"] = "binary"
        with pytest.raises(ConfigurationError, match="invalid target type 'binary'"):
            load_build_graph(write_graph(graph_description))

    def test_invalid_label(self, write_graph, graph_description) -> None:
        graph_description["targets"]["app:app"] = {"type": "group"}
        with pytest.raises(ConfigurationError, match="not source absolute"):
            load_build_graph(write_graph(graph_description))

    def test_missing_build_dir(self, write_graph, graph_description) -> None:
        del graph_description["build_dir"]
        with pytest.raises(ConfigurationError, match="build_dir"):
            load_build_graph(write_graph(graph_description))

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "graph.json"
        path.write_text("{")
        with pytest.raises(ConfigurationError, match="invalid JSON"):
            load_build_graph(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="failed to read"):
            load_build_graph(tmp_path / "missing.json")
