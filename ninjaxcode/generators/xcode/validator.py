import enum
from typing import Any, Dict, List, Set

from ninjaxcode.errors import PathResolutionError
from ninjaxcode.generators.xcode.model import (
    PBXNativeTarget,
    PBXProject,
    Reference,
    XcodeID,
    XcodeObject,
)


def collect_ids(project: PBXProject) -> Set[XcodeID]:
    all_ids: Set[XcodeID] = set()
    project.visit(lambda obj: all_ids.add(obj.id))
    return all_ids


def validate_references(project: PBXProject) -> List[str]:
    """
    Check that every object written in a property is part of the tree.

    A Reference to an object that was never attached to the project would
    otherwise be written as a dangling identifier.
    """
    errors: List[str] = []
    all_ids = collect_ids(project)

    def check_references(obj: Any, context: str):
        if isinstance(obj, (Reference, XcodeObject)):
            if obj.id is None or obj.id not in all_ids:
                errors.append(f"Invalid reference in {context}: {obj.id}")
        elif isinstance(obj, list):
            for index, item in enumerate(obj):
                check_references(item, f"{context}[{index}]")
        elif isinstance(obj, dict):
            for key, value in obj.items():
                check_references(value, f"{context}.{key}")
        elif isinstance(obj, (str, int, enum.Enum, type(None))):
            pass
        else:
            errors.append(f"Unknown type in {context}: {type(obj).__name__}")

    def visitor(obj: XcodeObject) -> None:
        context = f"{obj.isa.value} {obj.key()!r}"
        for name, value in obj.properties().items():
            check_references(value, f"{context}.{name}")

    project.visit(visitor)
    return errors


def validate_output_paths(project: PBXProject) -> None:
    for target in project.targets:
        if not isinstance(target, PBXNativeTarget):
            continue
        path = target.product_reference.path
        if any(c in path for c in '<>:"|?*'):
            raise PathResolutionError(
                f"Output path '{path}' contains invalid filesystem characters"
            )


def find_id_collisions(project: PBXProject) -> Dict[XcodeID, List[XcodeObject]]:
    """
    Group objects sharing an identifier.

    Identifiers are folded hashes, so two distinct objects may end up with the
    same value. Nothing resolves that, this only reports it.
    """
    objects: Dict[XcodeID, List[XcodeObject]] = {}
    project.visit(lambda obj: objects.setdefault(obj.id, []).append(obj))
    return {k: v for k, v in objects.items() if len(v) > 1}
