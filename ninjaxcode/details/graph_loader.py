# Reads a resolved build graph from its JSON description:
#
#   {
#     "root_path": "../..",                  (optional, relative to this file)
#     "build_dir": "//out/Debug/",
#     "target_os": "ios",                    (optional)
#     "default_toolchain": "//build/toolchain:clang",
#     "toolchains": {
#       "//build/toolchain:clang": {
#         "tools": {"link": {"default_output_dir": "{{root_out_dir}}"}}
#       }
#     },
#     "build_files": ["//BUILD.gn", "//build/config.gni"],
#     "gen_dependencies": ["/abs/path/read/while/resolving"],
#     "targets": {
#       "//app:app": {"type": "executable", "sources": [...], "deps": [...]}
#     }
#   }

import json
from graphlib import CycleError, TopologicalSorter
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ninjaxcode.details.graph import (
    BuildGraph,
    BuildSettings,
    BundleData,
    DependencyTracker,
    Label,
    OutputType,
    Target,
    Tool,
    Toolchain,
)
from ninjaxcode.errors import ConfigurationError, GraphConsistencyError

DEP_KEYS = ("public_deps", "deps", "data_deps")


def _parse_label(value: str, default_toolchain: Optional[Label] = None) -> Label:
    try:
        return Label.parse(value, default_toolchain)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def _load_toolchains(description: Dict[str, Any]) -> Dict[Label, Toolchain]:
    toolchains = {}
    for name, toolchain in description.get("toolchains", {}).items():
        label = _parse_label(name)
        tools = {
            tool_name: Tool(tool_name, tool.get("default_output_dir", ""))
            for tool_name, tool in toolchain.get("tools", {}).items()
        }
        toolchains[label] = Toolchain(label, tools)
    return toolchains


def _load_bundle_data(value: Optional[Dict[str, Any]]) -> Optional[BundleData]:
    if value is None:
        return None
    return BundleData(
        product_type=value.get("product_type", ""),
        root_dir_output=value.get("root_dir_output", ""),
        bundle_dir=value.get("bundle_dir", ""),
        xcode_extra_attributes=dict(value.get("xcode_extra_attributes", {})),
        xcode_test_application_name=value.get("xcode_test_application_name", ""),
    )


def _load_targets(
    description: Dict[str, Any], default_toolchain: Optional[Label]
) -> List[Target]:
    toolchains = _load_toolchains(description)

    entries: Dict[Label, Dict[str, Any]] = {}
    for name, entry in description.get("targets", {}).items():
        label = _parse_label(name, default_toolchain)
        if label in entries:
            raise ConfigurationError(f"duplicate target {label}")
        entries[label] = entry

    dependencies: Dict[Label, Dict[str, List[Label]]] = {}
    sorter: TopologicalSorter = TopologicalSorter()
    for label, entry in entries.items():
        # Dependencies without a toolchain inherit the one of their dependent.
        deps = {
            key: [_parse_label(d, label.toolchain) for d in entry.get(key, [])]
            for key in DEP_KEYS
        }
        for dep in (d for labels in deps.values() for d in labels):
            if dep not in entries:
                raise GraphConsistencyError(f"{label}: unknown dependency {dep}")
        dependencies[label] = deps
        sorter.add(label, *(d for labels in deps.values() for d in labels))

    try:
        order = list(sorter.static_order())
    except CycleError as e:
        cycle = " -> ".join(str(label) for label in e.args[1])
        raise GraphConsistencyError(f"dependency cycle: {cycle}") from e

    # Dependencies are built before their dependents.
    targets: Dict[Label, Target] = {}
    for label in order:
        entry = entries[label]
        deps = dependencies[label]
        try:
            output_type = OutputType(entry["type"])
        except (KeyError, ValueError) as e:
            raise ConfigurationError(
                f"{label}: invalid target type {entry.get('type')!r}"
            ) from e
        toolchain_label = label.toolchain
        toolchain = None
        if toolchain_label is not None:
            toolchain = toolchains.get(toolchain_label) or Toolchain(toolchain_label)
        targets[label] = Target(
            label=label,
            output_type=output_type,
            sources=entry.get("sources", []),
            inputs=entry.get("inputs", []),
            public_headers=entry.get("public", []),
            script=entry.get("script"),
            public_deps=[targets[d] for d in deps["public_deps"]],
            private_deps=[targets[d] for d in deps["deps"]],
            data_deps=[targets[d] for d in deps["data_deps"]],
            output_name=entry.get("output_name", ""),
            output_dir=entry.get("output_dir", ""),
            toolchain=toolchain,
            is_default_toolchain=toolchain_label == default_toolchain,
            bundle_data=_load_bundle_data(entry.get("bundle_data")),
            build_file=entry.get("build_file"),
        )

    # Keep the order of the description.
    return [targets[label] for label in entries]


def load_build_graph(
    path: Path, root_path: Optional[Path] = None
) -> Tuple[BuildSettings, BuildGraph, DependencyTracker]:
    """
    Load a build graph description.

    Args:
        path: The JSON file to read.
        root_path: Source root, overrides the "root_path" of the description.

    Returns:
        The build settings, the graph and a tracker listing the files read to
        produce the graph (the description itself included).
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            description = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"failed to read {path}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path}: invalid JSON: {e}") from e

    if "build_dir" not in description:
        raise ConfigurationError(f"{path}: missing 'build_dir'")

    if root_path is None:
        root_path = path.parent.joinpath(description.get("root_path", "."))
    root_path = Path(root_path).resolve()

    build_settings = BuildSettings(
        root_path=root_path,
        build_dir=description["build_dir"],
        target_os=description.get("target_os"),
    )

    default_toolchain = None
    if description.get("default_toolchain"):
        default_toolchain = _parse_label(description["default_toolchain"])

    graph = BuildGraph(
        _load_targets(description, default_toolchain),
        description.get("build_files", []),
    )

    tracker = DependencyTracker([path.resolve()])
    for dependency in description.get("gen_dependencies", []):
        tracker.add(Path(dependency))
    return build_settings, graph, tracker
