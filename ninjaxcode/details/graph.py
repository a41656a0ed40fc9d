# Read-only model of a resolved build graph, as handed over by the graph
# resolver. Nothing in here knows about Xcode.

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from ninjaxcode.details.paths import is_source_absolute
from ninjaxcode.errors import PathResolutionError


@dataclass(frozen=True, order=True)
class Label:
    # Directories are source absolute with a trailing slash ("//foo/bar/").
    dir: str
    name: str
    toolchain_dir: str = ""
    toolchain_name: str = ""

    @staticmethod
    def parse(value: str, default_toolchain: Optional["Label"] = None) -> "Label":
        toolchain: Optional[Label] = default_toolchain
        text = value.strip()
        if "(" in text:
            if not text.endswith(")"):
                raise ValueError(f"unterminated toolchain in label '{value}'")
            text, toolchain_text = text[:-1].split("(", 1)
            toolchain = Label.parse(toolchain_text)
        if not is_source_absolute(text):
            raise ValueError(f"label '{value}' is not source absolute")
        if ":" in text:
            dir_part, name = text.split(":", 1)
        else:
            dir_part, name = text, text.rstrip("/").rsplit("/", 1)[-1]
        if not name or "/" in name or ":" in name:
            raise ValueError(f"invalid target name in label '{value}'")
        dir_part = dir_part.rstrip("/") + "/"
        if dir_part == "/":
            dir_part = "//"
        return Label(
            dir=dir_part,
            name=name,
            toolchain_dir=toolchain.dir if toolchain else "",
            toolchain_name=toolchain.name if toolchain else "",
        )

    @property
    def toolchain(self) -> Optional["Label"]:
        if not self.toolchain_name:
            return None
        return Label(dir=self.toolchain_dir, name=self.toolchain_name)

    def user_visible_name(self, include_toolchain: bool = False) -> str:
        dir_part = self.dir if self.dir == "//" else self.dir.rstrip("/")
        result = f"{dir_part}:{self.name}"
        toolchain = self.toolchain
        if include_toolchain and toolchain:
            result += f"({toolchain.user_visible_name()})"
        return result

    def __str__(self) -> str:
        return self.user_visible_name(include_toolchain=True)


class OutputType(Enum):
    EXECUTABLE = "executable"
    CREATE_BUNDLE = "create_bundle"
    BUNDLE_DATA = "bundle_data"
    ACTION = "action"
    ACTION_FOREACH = "action_foreach"
    GROUP = "group"
    SOURCE_SET = "source_set"
    STATIC_LIBRARY = "static_library"
    SHARED_LIBRARY = "shared_library"
    LOADABLE_MODULE = "loadable_module"
    COPY_FILES = "copy"
    GENERATED_FILE = "generated_file"


# Tool that produces the final output of a target of the given type.
FINAL_OUTPUT_TOOLS = {
    OutputType.EXECUTABLE: "link",
    OutputType.SHARED_LIBRARY: "solink",
    OutputType.LOADABLE_MODULE: "solink_module",
    OutputType.STATIC_LIBRARY: "alink",
}


@dataclass
class Tool:
    name: str
    # Substitution pattern such as "{{root_out_dir}}/bin".
    default_output_dir: str = ""


@dataclass
class Toolchain:
    label: Label
    tools: Dict[str, Tool] = field(default_factory=dict)

    def get_tool(self, name: str) -> Optional[Tool]:
        return self.tools.get(name)


@dataclass
class BundleData:
    product_type: str = ""
    # Source absolute paths, e.g. "//out/Debug/Foo.app" and "//out/Debug/".
    root_dir_output: str = ""
    bundle_dir: str = ""
    xcode_extra_attributes: Dict[str, str] = field(default_factory=dict)
    xcode_test_application_name: str = ""


class Target:
    def __init__(
        self,
        *,
        label: Label,
        output_type: OutputType,
        sources: Sequence[str] = (),
        inputs: Sequence[str] = (),
        public_headers: Sequence[str] = (),
        script: Optional[str] = None,
        public_deps: Sequence["Target"] = (),
        private_deps: Sequence["Target"] = (),
        data_deps: Sequence["Target"] = (),
        output_name: str = "",
        output_dir: str = "",
        toolchain: Optional[Toolchain] = None,
        is_default_toolchain: bool = True,
        bundle_data: Optional[BundleData] = None,
        build_file: Optional[str] = None,
    ):
        self.label = label
        self.output_type = output_type
        self.sources = list(sources)
        self.inputs = list(inputs)
        self.public_headers = list(public_headers)
        self.script = script
        self.public_deps = list(public_deps)
        self.private_deps = list(private_deps)
        self.data_deps = list(data_deps)
        self.output_name = output_name
        self.output_dir = output_dir
        self.toolchain = toolchain
        self.is_default_toolchain = is_default_toolchain
        self.bundle_data = bundle_data or BundleData()
        self.build_file = build_file or f"{label.dir}BUILD.gn"

    @property
    def name(self) -> str:
        return self.label.name

    # Dependencies whose outputs are linked into this target.
    def linked_deps(self) -> Iterator["Target"]:
        yield from self.public_deps
        yield from self.private_deps

    def __repr__(self) -> str:
        return f"Target({self.label}, {self.output_type.name})"


class BuildSettings:
    def __init__(
        self,
        *,
        root_path: Path,
        build_dir: str,
        target_os: Optional[str] = None,
    ):
        if not is_source_absolute(build_dir):
            raise PathResolutionError(
                f"build directory '{build_dir}' must be source absolute (start with //)"
            )
        self.root_path = Path(root_path)
        self.build_dir = build_dir if build_dir.endswith("/") else build_dir + "/"
        self.target_os = target_os

    def get_full_path(self, source_path: str) -> Path:
        assert is_source_absolute(source_path)
        return self.root_path.joinpath(source_path[2:])


# Files the generation run itself read (graph description, scripts, ...).
class DependencyTracker:
    def __init__(self, files: Sequence[Path] = ()):
        self._files: List[Path] = []
        for path in files:
            self.add(path)

    def add(self, path: Path) -> None:
        path = Path(path)
        if path not in self._files:
            self._files.append(path)

    @property
    def files(self) -> List[Path]:
        return list(self._files)


class BuildGraph:
    def __init__(
        self,
        targets: Sequence[Target],
        build_files: Sequence[str] = (),
    ):
        self.targets = list(targets)
        # BUILD files and imports that are not attached to a target.
        self.build_files = list(build_files)

    def find(self, label: Label) -> Optional[Target]:
        return next((t for t in self.targets if t.label == label), None)
