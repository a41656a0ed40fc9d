# Xcode project model builder.
#
# This module turns a resolved build graph into the Xcode project model defined
# in model.py. Only executables and bundles become native targets, as they are
# the only targets that can be run (and thus debugged) from Xcode. Every target
# builds through a script running ninja; Xcode itself compiles nothing.

import os
from typing import Dict, List, Mapping, Optional, Set

from ninjaxcode.config import BuildSystem, Options
from ninjaxcode.details.graph import (
    FINAL_OUTPUT_TOOLS,
    BuildGraph,
    BuildSettings,
    DependencyTracker,
    OutputType,
    Target,
)
from ninjaxcode.details.label_pattern import (
    filter_patterns_from_string,
    filter_targets_by_patterns,
)
from ninjaxcode.details.paths import (
    is_string_in_output_dir,
    is_system_absolute,
    rebase_path,
    source_file_for_system_path,
)
from ninjaxcode.errors import GraphConsistencyError
from ninjaxcode.generators.xcode.build_script import get_build_script
from ninjaxcode.generators.xcode.model import (
    CompilerFlags,
    FileType,
    PBXAttributes,
    PBXNativeTarget,
    PBXProject,
    ProductType,
    assign_ids,
)
from ninjaxcode.generators.xcode.xctest import (
    XCTEST_MODULE_TARGET_SUFFIX,
    BundleTargets,
    XCTestFilesResolver,
    find_application_target_by_name,
    is_test_module_target,
    is_xctest_module_target,
    is_xcuitest_module_target,
    is_xcuitest_runner_target,
)

# Standalone executables can't be run from Xcode on those platforms
MOBILE_TARGET_OS = frozenset({"ios", "tvos"})

# Xcode asks to upgrade the project when those keys are missing. They are
# never used by ninja, which takes its settings from the build files.
XCODE_DEFAULT_ATTRIBUTES: PBXAttributes = {
    "ALWAYS_SEARCH_USER_PATHS": "NO",
    "CLANG_ANALYZER_LOCALIZABILITY_NONLOCALIZED": "YES",
    "CLANG_WARN__DUPLICATE_METHOD_MATCH": "YES",
    "CLANG_WARN_BLOCK_CAPTURE_AUTORELEASING": "YES",
    "CLANG_WARN_BOOL_CONVERSION": "YES",
    "CLANG_WARN_COMMA": "YES",
    "CLANG_WARN_CONSTANT_CONVERSION": "YES",
    "CLANG_WARN_DEPRECATED_OBJC_IMPLEMENTATIONS": "YES",
    "CLANG_WARN_EMPTY_BODY": "YES",
    "CLANG_WARN_ENUM_CONVERSION": "YES",
    "CLANG_WARN_INFINITE_RECURSION": "YES",
    "CLANG_WARN_INT_CONVERSION": "YES",
    "CLANG_WARN_NON_LITERAL_NULL_CONVERSION": "YES",
    "CLANG_WARN_OBJC_IMPLICIT_RETAIN_SELF": "YES",
    "CLANG_WARN_OBJC_LITERAL_CONVERSION": "YES",
    "CLANG_WARN_QUOTED_INCLUDE_IN_FRAMEWORK_HEADER": "YES",
    "CLANG_WARN_RANGE_LOOP_ANALYSIS": "YES",
    "CLANG_WARN_STRICT_PROTOTYPES": "YES",
    "CLANG_WARN_SUSPICIOUS_MOVE": "YES",
    "CLANG_WARN_UNREACHABLE_CODE": "YES",
    "ENABLE_STRICT_OBJC_MSGSEND": "YES",
    "ENABLE_TESTABILITY": "YES",
    "GCC_NO_COMMON_BLOCKS": "YES",
    "GCC_WARN_64_TO_32_BIT_CONVERSION": "YES",
    "GCC_WARN_ABOUT_RETURN_TYPE": "YES",
    "GCC_WARN_UNDECLARED_SELECTOR": "YES",
    "GCC_WARN_UNINITIALIZED_AUTOS": "YES",
    "GCC_WARN_UNUSED_FUNCTION": "YES",
    "GCC_WARN_UNUSED_VARIABLE": "YES",
    "ONLY_ACTIVE_ARCH": "YES",
}


def config_name_from_build_settings(build_settings: BuildSettings) -> str:
    # Follows the Xcode convention of naming the build directory
    # out/$configuration-$platform (e.g. out/Debug-iphonesimulator).
    config_name = build_settings.build_dir.rstrip("/").rsplit("/", 1)[-1]
    config_name = config_name.split("-", 1)[0]
    return config_name or "Default"


def source_path_from_build_settings(build_settings: BuildSettings) -> str:
    return rebase_path("//", build_settings.build_dir)


def project_attributes_from_build_settings(
    build_settings: BuildSettings,
) -> PBXAttributes:
    attributes: PBXAttributes = {}
    if build_settings.target_os == "ios":
        attributes["SDKROOT"] = "iphoneos"
        attributes["TARGETED_DEVICE_FAMILY"] = "1,2"
    elif build_settings.target_os == "tvos":
        attributes["SDKROOT"] = "appletvos"
        attributes["TARGETED_DEVICE_FAMILY"] = "3"
    else:
        attributes["SDKROOT"] = "macosx"
    attributes.update(XCODE_DEFAULT_ATTRIBUTES)
    return attributes


class XcodeProjectBuilder:
    def __init__(
        self,
        build_settings: BuildSettings,
        options: Options,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.build_settings = build_settings
        self.options = options
        self.environ = os.environ if environ is None else environ
        self.root_src_dir = source_path_from_build_settings(build_settings)
        self.project = PBXProject(
            options.project_name,
            config_name_from_build_settings(build_settings),
            self.root_src_dir,
            project_attributes_from_build_settings(build_settings),
        )

    def _build_script(self, target_name: str) -> str:
        return get_build_script(
            target_name,
            self.options.ninja_executable,
            self.root_src_dir,
            self.environ,
        )

    def should_include_file_in_project(self, source: str) -> bool:
        if is_string_in_output_dir(self.build_settings.build_dir, source):
            return False
        if is_system_absolute(source):
            return False
        return True

    def add_sources_from_graph(
        self, graph: BuildGraph, tracker: Optional[DependencyTracker] = None
    ) -> None:
        """
        Add every file known to the build to the project.

        This is more than compilable sources: inputs, headers, action scripts,
        build files and the files read while generating the project are all
        listed so they can be browsed from Xcode.
        """
        sources: Set[str] = set()

        for target in graph.targets:
            candidates = [*target.sources, *target.inputs, *target.public_headers]
            if target.output_type in (OutputType.ACTION, OutputType.ACTION_FOREACH):
                if target.script:
                    candidates.append(target.script)
            candidates.append(target.build_file)
            sources.update(c for c in candidates if self.should_include_file_in_project(c))

        sources.update(
            f for f in graph.build_files if self.should_include_file_in_project(f)
        )

        if tracker is not None:
            for path in tracker.files:
                source = source_file_for_system_path(self.build_settings.root_path, path)
                if source and self.should_include_file_in_project(source):
                    sources.add(source)

        # Sorted for a deterministic project (and a nicely sorted file list).
        for source in sorted(sources):
            self.project.add_source_file_to_indexing_target(
                rebase_path(source, "//", self.build_settings.root_path),
                CompilerFlags.NONE,
            )

    def get_targets_from_graph(self, graph: BuildGraph) -> List[Target]:
        all_targets = list(graph.targets)

        if self.options.dir_filters_string:
            patterns = filter_patterns_from_string(self.options.dir_filters_string)
            all_targets = filter_targets_by_patterns(all_targets, patterns)

        all_targets = [t for t in all_targets if t.is_default_toolchain]

        # Executables linked by a bundle_data target are assumed to be part of
        # an application bundle generated elsewhere.
        embedded: Set[int] = set()
        for target in all_targets:
            if target.output_type is not OutputType.BUNDLE_DATA:
                continue
            for dep in target.linked_deps():
                if dep.output_type is OutputType.EXECUTABLE:
                    embedded.add(id(dep))
        targets = [t for t in all_targets if id(t) not in embedded]

        # Sorted per label for a stable project file.
        return sorted(targets, key=lambda t: t.label)

    def add_targets_from_graph(self, graph: BuildGraph) -> None:
        self.project.add_aggregate_target(
            "All", self._build_script(self.options.root_target_name)
        )

        mobile = self.build_settings.target_os in MOBILE_TARGET_OS
        bundle_targets: BundleTargets = {}

        for target in self.get_targets_from_graph(graph):
            if target.output_type is OutputType.EXECUTABLE:
                if mobile:
                    continue
                self.add_binary_target(target)
            elif target.output_type is OutputType.CREATE_BUNDLE:
                if not target.bundle_data.product_type:
                    continue
                # Only the "_module" half of a UI test gets a target.
                if is_xcuitest_runner_target(target):
                    continue
                bundle_targets[target.label] = (target, self.add_bundle_target(target))

        self.add_xctest_source_files_for_test_module_targets(bundle_targets)

        # Make the application a dependency of its test module so it is rebuilt
        # when building the tests.
        self.add_dependency_targets_for_test_module_targets(bundle_targets)

    def _binary_output_dir(self, target: Target) -> str:
        if target.output_dir:
            return rebase_path(target.output_dir, self.build_settings.build_dir)
        tool_name = FINAL_OUTPUT_TOOLS[target.output_type]
        tool = target.toolchain.get_tool(tool_name) if target.toolchain else None
        if tool is None:
            toolchain_name = (
                target.toolchain.label.user_visible_name() if target.toolchain else "<none>"
            )
            raise GraphConsistencyError(
                f"{tool_name} tool not defined. The toolchain {toolchain_name} "
                f"used by target {target.label.user_visible_name()} doesn't "
                f'define a "{tool_name}" tool.'
            )
        return apply_output_dir_pattern(tool.default_output_dir, target)

    def add_binary_target(self, target: Target) -> PBXNativeTarget:
        assert target.output_type is OutputType.EXECUTABLE
        return self.project.add_native_target(
            target.name,
            FileType.EXECUTABLE.value,
            target.output_name or target.name,
            ProductType.TOOL.value,
            self._binary_output_dir(target),
            self._build_script(target.name),
        )

    def add_bundle_target(self, target: Target) -> PBXNativeTarget:
        assert target.output_type is OutputType.CREATE_BUNDLE
        pbxtarget_name = target.name
        if is_xcuitest_module_target(target):
            pbxtarget_name = pbxtarget_name[: -len(XCTEST_MODULE_TARGET_SUFFIX)]

        extra_attributes: PBXAttributes = dict(
            target.bundle_data.xcode_extra_attributes
        )
        if self.options.build_system is BuildSystem.LEGACY:
            extra_attributes["CODE_SIGN_IDENTITY"] = ""

        build_dir = self.build_settings.build_dir
        return self.project.add_native_target(
            pbxtarget_name,
            "",
            rebase_path(target.bundle_data.root_dir_output, build_dir),
            target.bundle_data.product_type,
            rebase_path(target.bundle_data.bundle_dir, build_dir),
            self._build_script(pbxtarget_name),
            extra_attributes,
        )

    def add_xctest_source_files_for_test_module_targets(
        self, bundle_targets: BundleTargets
    ) -> None:
        """
        List the test files of every test module in its sources phase.

        Xcode needs to see the test files to index them and discover the tests,
        but they are compiled by ninja, so they are added with "--help" as
        compiler flag. The new build system no longer honours that flag, so
        nothing is added when it is selected.
        """
        if self.options.build_system is BuildSystem.NEW:
            return

        resolver = XCTestFilesResolver()
        for target, native_target in bundle_targets.values():
            if not is_test_module_target(target):
                continue

            # XCTest files are compiled into the host application, XCUITest
            # files into the test module itself.
            if is_xctest_module_target(target):
                target_with_xctest_files, _ = find_application_target_by_name(
                    target,
                    target.bundle_data.xcode_test_application_name,
                    bundle_targets,
                )
            else:
                target_with_xctest_files = target

            sources = resolver.search_files_for_target(target_with_xctest_files)
            for source in sorted(sources):
                self.project.add_source_file(
                    rebase_path(source, "//", self.build_settings.root_path),
                    CompilerFlags.HELP,
                    native_target,
                )

    def add_dependency_targets_for_test_module_targets(
        self, bundle_targets: BundleTargets
    ) -> None:
        for target, native_target in bundle_targets.values():
            if not is_test_module_target(target):
                continue
            _, application = find_application_target_by_name(
                target,
                target.bundle_data.xcode_test_application_name,
                bundle_targets,
            )
            native_target.add_dependency(application, self.project)

    def assign_ids(self) -> None:
        assign_ids(self.project)


def apply_output_dir_pattern(pattern: str, target: Target) -> str:
    # Output directories are relative to the build directory.
    label_dir = target.label.dir[2:].rstrip("/")
    substitutions: Dict[str, str] = {
        "{{root_out_dir}}": ".",
        "{{root_gen_dir}}": "gen",
        "{{target_out_dir}}": "/".join(p for p in ("obj", label_dir) if p),
        "{{target_gen_dir}}": "/".join(p for p in ("gen", label_dir) if p),
    }
    result = pattern
    for placeholder, value in substitutions.items():
        result = result.replace(placeholder, value)
    return result
