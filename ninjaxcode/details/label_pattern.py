from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from ninjaxcode.details.graph import Label, Target
from ninjaxcode.errors import ConfigurationError

# Patterns select targets by label:
#   //foo:bar   exactly that target
#   //foo:*     every target in //foo
#   //foo/*     every target in //foo and below
#   *           every target
# Any of them may carry a toolchain, e.g. "//foo/*(//build/toolchain:host)".
# Patterns not starting with "//" are relative to the source root.


class PatternType(Enum):
    MATCH = 1
    DIRECTORY = 2
    RECURSIVE_DIRECTORY = 3


@dataclass(frozen=True)
class LabelPattern:
    type: PatternType
    dir: str
    name: str = ""
    toolchain: Optional[Label] = None

    @staticmethod
    def parse(pattern: str) -> "LabelPattern":
        def fail(reason: str) -> ConfigurationError:
            return ConfigurationError(f"invalid label pattern '{pattern}': {reason}")

        text = pattern.strip()
        if not text:
            raise fail("empty pattern")
        toolchain = None
        if "(" in text:
            if not text.endswith(")"):
                raise fail("toolchain is missing its closing parenthesis")
            text, toolchain_text = text[:-1].split("(", 1)
            if "*" in toolchain_text:
                raise fail("toolchains can't contain wildcards")
            try:
                toolchain = Label.parse(toolchain_text)
            except ValueError as e:
                raise fail(str(e))
        if text.startswith("/") and not text.startswith("//"):
            raise fail("system absolute paths are not supported")
        if not text.startswith("//"):
            text = "//" + text

        if ":" in text:
            path, name = text.split(":", 1)
            if "*" in path:
                raise fail("a directory wildcard can't be followed by a name")
            if not name:
                raise fail("a colon must be followed by a name or '*'")
            if name == "*":
                return LabelPattern(PatternType.DIRECTORY, _as_dir(path), "", toolchain)
            if "*" in name:
                raise fail("wildcards in names must be a single '*'")
            return LabelPattern(PatternType.MATCH, _as_dir(path), name, toolchain)

        if "*" in text:
            if not text.endswith("*") or text.count("*") > 1:
                raise fail("wildcards must be at the end of the pattern")
            path = text[:-1]
            if not path.endswith("/"):
                raise fail("a directory wildcard must follow a '/'")
            return LabelPattern(PatternType.RECURSIVE_DIRECTORY, _as_dir(path), "", toolchain)

        # "//foo/bar" is shorthand for "//foo/bar:bar".
        name = text.rstrip("/").rsplit("/", 1)[-1]
        if not name:
            raise fail("the root directory needs an explicit name or wildcard")
        return LabelPattern(PatternType.MATCH, _as_dir(text), name, toolchain)

    def matches(self, label: Label) -> bool:
        if self.toolchain is not None and label.toolchain != self.toolchain:
            return False
        if self.type is PatternType.MATCH:
            return label.dir == self.dir and label.name == self.name
        if self.type is PatternType.DIRECTORY:
            return label.dir == self.dir
        return label.dir.startswith(self.dir)


def _as_dir(path: str) -> str:
    path = path.rstrip("/") + "/"
    return "//" if path == "/" else path


def filter_patterns_from_string(patterns: str) -> List[LabelPattern]:
    return [
        LabelPattern.parse(part)
        for part in patterns.split(";")
        if part.strip()
    ]


def filter_targets_by_patterns(
    targets: Iterable[Target], patterns: Sequence[LabelPattern]
) -> List[Target]:
    return [t for t in targets if any(p.matches(t.label) for p in patterns)]
