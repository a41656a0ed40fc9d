from typing import Dict, List, Mapping, Optional

from ninjaxcode.config import Options
from ninjaxcode.details.graph import BuildGraph, BuildSettings, DependencyTracker
from ninjaxcode.details.paths import resolve_relative_file
from ninjaxcode.details.write_file import write_file_if_changed
from ninjaxcode.errors import GraphConsistencyError
from ninjaxcode.generators.xcode.formatter import format_xcode_project
from ninjaxcode.generators.xcode.model import PBXProject
from ninjaxcode.generators.xcode.model_builder import XcodeProjectBuilder
from ninjaxcode.generators.xcode.validator import (
    validate_output_paths,
    validate_references,
)
from ninjaxcode.generators.xcode.workspace import XcodeWorkspace


def generate_xcode_project(
    options: Options,
    build_settings: BuildSettings,
    graph: BuildGraph,
    tracker: Optional[DependencyTracker] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PBXProject:
    builder = XcodeProjectBuilder(build_settings, options, environ)
    builder.add_sources_from_graph(graph, tracker)
    builder.add_targets_from_graph(graph)
    builder.assign_ids()
    return builder.project


class XcodeWriter:
    def __init__(
        self,
        options: Options,
        build_settings: BuildSettings,
        graph: BuildGraph,
        tracker: Optional[DependencyTracker] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.options = options
        self.build_settings = build_settings
        self.graph = graph
        self.tracker = tracker
        self.environ = environ

    def render(self) -> Dict[str, str]:
        """
        Render every output file in memory.

        Returns:
            A dict mapping the source absolute path of each file (project file
            and embedded workspace) to its content.
        """
        project = generate_xcode_project(
            self.options, self.build_settings, self.graph, self.tracker, self.environ
        )

        if errors := validate_references(project):
            raise GraphConsistencyError(f"Invalid project: {errors}")
        validate_output_paths(project)

        project_dir = f"{self.options.project_name}.xcodeproj"
        files = {
            resolve_relative_file(
                self.build_settings.build_dir, f"{project_dir}/project.pbxproj"
            ): format_xcode_project(project)
        }
        workspace = XcodeWorkspace(self.build_settings, self.options)
        files.update(workspace.files(f"{project_dir}/project.xcworkspace"))
        return files

    def __call__(self) -> List[str]:
        """Write the Xcode project, returns the files whose content changed."""
        # Everything is rendered before the first write, a failure leaves the
        # existing project untouched.
        files = self.render()
        written = []
        for path, contents in files.items():
            if write_file_if_changed(self.build_settings.get_full_path(path), contents):
                written.append(path)
        return written
