"""
Xcode project file formatter.

This module converts a PBXProject object tree (with identifiers assigned) into
the text of a project.pbxproj file. Objects are grouped per class into
sections, sections follow the order of PBXObjectClass and objects inside a
section are sorted by identifier, so the output only depends on the tree.
"""

import enum
import string
from dataclasses import dataclass
from typing import Any, Dict, List

from ninjaxcode.generators.xcode.model import (
    PBXObjectClass,
    PBXProject,
    Reference,
    XcodeObject,
)

OBJECT_VERSION = 46

_SAFE_CHARACTERS = frozenset(string.ascii_letters + string.digits + "$./_")

_ESCAPED_CHARACTERS = {
    "\\": "\\\\",
    '"': '\\"',
    "\a": "\\a",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\v": "\\v",
    "\f": "\\f",
    "\r": "\\r",
}


@dataclass(frozen=True)
class IndentRules:
    one_line: bool
    level: int


def encode_string(value: str) -> str:
    """
    Quote value unless it is a non-empty run of [A-Za-z0-9$./_].

    Control characters without a short escape are written as \\Uxxxx.
    """
    if value and all(c in _SAFE_CHARACTERS for c in value):
        return value
    encoded = ['"']
    for c in value:
        if c in _ESCAPED_CHARACTERS:
            encoded.append(_ESCAPED_CHARACTERS[c])
        elif ord(c) < 0x20:
            encoded.append(f"\\U{ord(c):04x}")
        else:
            encoded.append(c)
    encoded.append('"')
    return "".join(encoded)


def format_reference(reference: Reference) -> str:
    if reference.id is None:
        raise ValueError(
            f"{reference.target.isa.value} {reference.target.key()!r} has no identifier"
        )
    comment = reference.comment
    if comment:
        return f"{reference.id} /* {comment} */"
    return reference.id


def format_value(value: Any, rules: IndentRules) -> str:
    # Owned objects and references are both written as a reference
    if isinstance(value, XcodeObject):
        return format_reference(Reference(value))
    elif isinstance(value, Reference):
        return format_reference(value)
    elif isinstance(value, enum.Enum):
        return format_value(value.value, rules)
    elif isinstance(value, bool):
        return "1" if value else "0"
    elif isinstance(value, int):
        return str(value)
    elif isinstance(value, str):
        return encode_string(value)
    elif isinstance(value, list):
        return format_list(value, rules)
    elif isinstance(value, dict):
        return format_dict(value, rules)
    raise TypeError(f"Unsupported type: {type(value).__name__} for value: {value!r}")


def format_list(values: List[Any], rules: IndentRules) -> str:
    sub_rules = IndentRules(rules.one_line, rules.level + 1)
    result = "(" if rules.one_line else "(\n"
    for value in values:
        if rules.one_line:
            result += f"{format_value(value, sub_rules)}, "
        else:
            result += "\t" * sub_rules.level + f"{format_value(value, sub_rules)},\n"
    if not rules.one_line:
        result += "\t" * rules.level
    return result + ")"


def format_dict(values: Dict[str, Any], rules: IndentRules) -> str:
    sub_rules = IndentRules(rules.one_line, rules.level + 1)
    result = "{" if rules.one_line else "{\n"
    for key in sorted(values):
        formatted = f"{encode_string(key)} = {format_value(values[key], sub_rules)};"
        if rules.one_line:
            result += formatted + " "
        else:
            result += "\t" * sub_rules.level + formatted + "\n"
    if not rules.one_line:
        result += "\t" * rules.level
    return result + "}"


def format_object(obj: XcodeObject, indent: int) -> str:
    indent_str = "\t" * indent
    properties = obj.properties()
    # "isa" always comes first, the remaining properties are sorted
    items = [("isa", obj.isa.value)] + sorted(properties.items())
    header = f"{indent_str}{format_reference(Reference(obj))} = {{"
    if obj.one_line:
        rules = IndentRules(one_line=True, level=0)
        body = "".join(f"{k} = {format_value(v, rules)}; " for k, v in items)
        return f"{header}{body}}};\n"
    rules = IndentRules(one_line=False, level=indent + 1)
    body = "".join(
        f"{indent_str}\t{k} = {format_value(v, rules)};\n" for k, v in items
    )
    return f"{header}\n{body}{indent_str}}};\n"


def collect_objects_per_class(
    project: PBXProject,
) -> Dict[PBXObjectClass, List[XcodeObject]]:
    objects: Dict[PBXObjectClass, List[XcodeObject]] = {}
    project.visit(lambda obj: objects.setdefault(obj.isa, []).append(obj))
    return objects


def format_xcode_project(project: PBXProject) -> str:
    """
    Convert a PBXProject tree to the content of a project.pbxproj file.

    Args:
        project: The project, identifiers must already be assigned.

    Returns:
        The text of the project file.
    """
    result = (
        "// !$*UTF8*$!\n"
        "{\n"
        "\tarchiveVersion = 1;\n"
        "\tclasses = {\n"
        "\t};\n"
        f"\tobjectVersion = {OBJECT_VERSION};\n"
        "\tobjects = {\n"
    )

    objects_per_class = collect_objects_per_class(project)
    for object_class in PBXObjectClass:
        objects = objects_per_class.get(object_class)
        if not objects:
            continue
        result += f"\n/* Begin {object_class.value} section */\n"
        for obj in sorted(objects, key=lambda o: o.id or ""):
            result += format_object(obj, 2)
        result += f"/* End {object_class.value} section */\n"

    result += (
        "\t};\n"
        f"\trootObject = {format_reference(Reference(project))};\n"
        "}\n"
    )
    return result
