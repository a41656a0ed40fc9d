# Conventions used to recognise XCTest and XCUITest targets.
#
# A unit test is a "${name}_module" bundle whose test files are compiled in the
# host application. A UI test is made of two bundles, "${name}_module" holding
# the tests and "${name}_runner" (an application), but Xcode only wants one
# target named "${name}" to run them.

from typing import Dict, FrozenSet, List, Set, Tuple

from ninjaxcode.details.graph import Label, OutputType, Target
from ninjaxcode.details.paths import find_filename
from ninjaxcode.errors import GraphConsistencyError
from ninjaxcode.generators.xcode.model import PBXNativeTarget, ProductType

XCTEST_FILE_SUFFIXES = (
    "egtest.m",
    "egtest.mm",
    "xctest.m",
    "xctest.mm",
)

XCTEST_MODULE_TARGET_SUFFIX = "_module"
XCUITEST_RUNNER_TARGET_SUFFIX = "_runner"

BundleTargets = Dict[Label, Tuple[Target, PBXNativeTarget]]


def _is_bundle_of_type(target: Target, product_type: ProductType) -> bool:
    return (
        target.output_type is OutputType.CREATE_BUNDLE
        and target.bundle_data.product_type == product_type.value
    )


def is_application_target(target: Target) -> bool:
    return _is_bundle_of_type(target, ProductType.APPLICATION)


def is_xcuitest_runner_target(target: Target) -> bool:
    return is_application_target(target) and target.name.endswith(
        XCUITEST_RUNNER_TARGET_SUFFIX
    )


def is_xctest_module_target(target: Target) -> bool:
    return _is_bundle_of_type(
        target, ProductType.UNIT_TEST_BUNDLE
    ) and target.name.endswith(XCTEST_MODULE_TARGET_SUFFIX)


def is_xcuitest_module_target(target: Target) -> bool:
    return _is_bundle_of_type(
        target, ProductType.UI_TEST_BUNDLE
    ) and target.name.endswith(XCTEST_MODULE_TARGET_SUFFIX)


def is_test_module_target(target: Target) -> bool:
    return is_xctest_module_target(target) or is_xcuitest_module_target(target)


def is_xctest_file(source: str) -> bool:
    return find_filename(source).endswith(XCTEST_FILE_SUFFIXES)


def find_application_target_by_name(
    module: Target, target_name: str, bundle_targets: BundleTargets
) -> Tuple[Target, PBXNativeTarget]:
    for target, native_target in bundle_targets.values():
        if target.name != target_name:
            continue
        if not is_application_target(target):
            raise GraphConsistencyError(
                f'{module.label}: host application target "{target_name}" '
                "is not an application bundle"
            )
        return target, native_target
    raise GraphConsistencyError(
        f'{module.label}: cannot find host application bundle "{target_name}"'
    )


class XCTestFilesResolver:
    """
    Finds the XCTest files of a target and of all its public and private deps.

    Results are cached per target, so a target reachable through several paths
    is only searched once. Reuse the same resolver for a whole project.
    """

    def __init__(self) -> None:
        self._cache: Dict[Label, FrozenSet[str]] = {}

    def search_files_for_target(self, target: Target) -> FrozenSet[str]:
        # Iterative post-order walk, a dependency is resolved before the
        # targets depending on it.
        stack: List[Tuple[Target, bool]] = [(target, False)]
        while stack:
            current, deps_resolved = stack.pop()
            if current.label in self._cache:
                continue
            if not deps_resolved:
                stack.append((current, True))
                for dep in reversed(list(current.linked_deps())):
                    if dep.label not in self._cache:
                        stack.append((dep, False))
                continue
            files: Set[str] = {s for s in current.sources if is_xctest_file(s)}
            for dep in current.linked_deps():
                files.update(self._cache[dep.label])
            self._cache[current.label] = frozenset(files)
        return self._cache[target.label]
