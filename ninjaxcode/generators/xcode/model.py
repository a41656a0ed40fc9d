# Xcode project file model.
#
# This module defines the data model for an Xcode project file (.pbxproj).
# Objects form a tree: every object but the PBXProject is owned by exactly one
# parent and owned children are kept in insertion order. Cross links (a target
# dependency pointing at a target, a build file pointing at a file reference)
# are non-owning References. Identifiers are assigned in a single pass once
# the tree is complete, see assign_ids().

import hashlib
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    TypeVar,
    Union,
)

from ninjaxcode.details.paths import find_extension, find_filename, strip_extension


# Type definition for Xcode object identifiers
class XcodeID(str):
    pass


# Values stay sorted alphabetically, this is also the order of the sections in
# the project file.
class PBXObjectClass(Enum):
    PBXAggregateTarget = "PBXAggregateTarget"
    PBXBuildFile = "PBXBuildFile"
    PBXContainerItemProxy = "PBXContainerItemProxy"
    PBXFileReference = "PBXFileReference"
    PBXFrameworksBuildPhase = "PBXFrameworksBuildPhase"
    PBXGroup = "PBXGroup"
    PBXNativeTarget = "PBXNativeTarget"
    PBXProject = "PBXProject"
    PBXShellScriptBuildPhase = "PBXShellScriptBuildPhase"
    PBXSourcesBuildPhase = "PBXSourcesBuildPhase"
    PBXTargetDependency = "PBXTargetDependency"
    XCBuildConfiguration = "XCBuildConfiguration"
    XCConfigurationList = "XCConfigurationList"


# Source Tree values used in PBXFileReference and PBXGroup
class SourceTree(Enum):
    # Relative to the enclosing group, used for every source file
    GROUP = "<group>"
    # For product references only
    BUILT_PRODUCTS_DIR = "BUILT_PRODUCTS_DIR"


# File types used in PBXFileReference
class FileType(Enum):
    ARCHIVE = "archive.ar"
    APPLICATION = "wrapper.application"
    APP_EXTENSION = "wrapper.app-extension"
    FILE = "file"
    CFBUNDLE = "wrapper.cfbundle"
    C = "sourcecode.c.c"
    CPP = "sourcecode.cpp.cpp"
    CSS = "text.css"
    SOURCECODE = "sourcecode"
    DYLIB = "compiled.mach-o.dylib"
    FRAMEWORK = "wrapper.framework"
    TEXT = "text"
    C_HEADER = "sourcecode.c.h"
    CPP_HEADER = "sourcecode.cpp.h"
    ICNS = "image.icns"
    JAVA = "sourcecode.java"
    JAVASCRIPT = "sourcecode.javascript"
    KEXT = "wrapper.kext"
    OBJC = "sourcecode.c.objc"
    OBJCPP = "sourcecode.cpp.objcpp"
    NIB = "wrapper.nib"
    OBJFILE = "compiled.mach-o.objfile"
    PDF = "image.pdf"
    PERL = "text.script.perl"
    PLIST = "text.plist.xml"
    PNG = "image.png"
    PYTHON = "text.script.python"
    REZ = "sourcecode.rez"
    ASM = "sourcecode.asm"
    STORYBOARD = "file.storyboard"
    STRINGS = "text.plist.strings"
    SWIFT = "sourcecode.swift"
    ASSET_CATALOG = "folder.assetcatalog"
    XCCONFIG = "text.xcconfig"
    XCDATAMODEL = "wrapper.xcdatamodel"
    XCDATAMODELD = "wrapper.xcdatamodeld"
    XPC_SERVICE = "wrapper.xpc-service"
    XIB = "file.xib"
    YACC = "sourcecode.yacc"
    EXECUTABLE = "compiled.mach-o.executable"

    @staticmethod
    def from_extension(ext: str) -> "FileType":
        if ext.startswith("."):
            ext = ext[1:]

        ext_to_type = {
            "a": FileType.ARCHIVE,
            "app": FileType.APPLICATION,
            "appex": FileType.APP_EXTENSION,
            "bdic": FileType.FILE,
            "bundle": FileType.CFBUNDLE,
            "c": FileType.C,
            "cc": FileType.CPP,
            "cpp": FileType.CPP,
            "css": FileType.CSS,
            "cxx": FileType.CPP,
            "dart": FileType.SOURCECODE,
            "dylib": FileType.DYLIB,
            "framework": FileType.FRAMEWORK,
            "gn": FileType.TEXT,
            "gni": FileType.TEXT,
            "h": FileType.C_HEADER,
            "hxx": FileType.CPP_HEADER,
            "icns": FileType.ICNS,
            "java": FileType.JAVA,
            "js": FileType.JAVASCRIPT,
            "kext": FileType.KEXT,
            "m": FileType.OBJC,
            "mm": FileType.OBJCPP,
            "nib": FileType.NIB,
            "o": FileType.OBJFILE,
            "pdf": FileType.PDF,
            "pl": FileType.PERL,
            "plist": FileType.PLIST,
            "pm": FileType.PERL,
            "png": FileType.PNG,
            "py": FileType.PYTHON,
            "r": FileType.REZ,
            "rez": FileType.REZ,
            "s": FileType.ASM,
            "storyboard": FileType.STORYBOARD,
            "strings": FileType.STRINGS,
            "swift": FileType.SWIFT,
            "ttf": FileType.FILE,
            "xcassets": FileType.ASSET_CATALOG,
            "xcconfig": FileType.XCCONFIG,
            "xcdatamodel": FileType.XCDATAMODEL,
            "xcdatamodeld": FileType.XCDATAMODELD,
            "xctest": FileType.CFBUNDLE,
            "xpc": FileType.XPC_SERVICE,
            "xib": FileType.XIB,
            "y": FileType.YACC,
        }

        return ext_to_type.get(ext, FileType.TEXT)

    @staticmethod
    def is_explicit(ext: str) -> bool:
        # Xcode would otherwise guess a wrong type for those
        return ext == "dart"


# Product types used in PBXNativeTarget
class ProductType(Enum):
    APPLICATION = "com.apple.product-type.application"
    BUNDLE = "com.apple.product-type.bundle"
    FRAMEWORK = "com.apple.product-type.framework"
    TOOL = "com.apple.product-type.tool"
    UNIT_TEST_BUNDLE = "com.apple.product-type.bundle.unit-test"
    UI_TEST_BUNDLE = "com.apple.product-type.bundle.ui-testing"


# Per-file compiler flags of a PBXBuildFile
class CompilerFlags(Enum):
    NONE = 0
    # Makes Xcode parse (and index) the file without compiling it
    HELP = 1


class ProxyType(Enum):
    TARGET_DEPENDENCY = 1


# Extensions Xcode is able to index when they belong to a target
INDEXABLE_EXTENSIONS = frozenset({"c", "cc", "cpp", "cxx", "m", "mm", "swift"})

BUILD_ACTION_MASK = 0x7FFFFFFF

PBXAttributes = Dict[str, Union[str, List[str], Dict[str, Any]]]

ReferenceT = TypeVar("ReferenceT", bound="XcodeObject")


# Non-owning link to another object of the same tree
@dataclass(frozen=True)
class Reference(Generic[ReferenceT]):
    target: ReferenceT
    with_comment: bool = True

    @property
    def id(self) -> Optional[XcodeID]:
        return self.target.id

    @property
    def comment(self) -> Optional[str]:
        return self.target.comment() if self.with_comment else None


# Base class for all Xcode objects
@dataclass(eq=False)
class XcodeObject(ABC):
    isa: ClassVar[PBXObjectClass]
    # PBXBuildFile and PBXFileReference are written on a single line
    one_line: ClassVar[bool] = False

    # Assigned by assign_ids() once the tree is complete
    id: Optional[XcodeID] = field(default=None, init=False)

    # Name used to derive the identifier
    @abstractmethod
    def key(self) -> str:
        pass

    def comment(self) -> str:
        return self.key()

    # Properties written to the project file, "isa" excluded
    @abstractmethod
    def properties(self) -> Dict[str, Any]:
        pass

    # Objects owned by this one, in insertion order
    def owned(self) -> Iterator["XcodeObject"]:
        return iter(())

    def visit(self, visitor: Callable[["XcodeObject"], None]) -> None:
        visitor(self)
        for child in self.owned():
            child.visit(visitor)


@dataclass(eq=False)
class PBXFileReference(XcodeObject):
    isa = PBXObjectClass.PBXFileReference
    one_line = True

    name: str
    path: str
    # Explicit type, only set for products
    type: str = ""

    def key(self) -> str:
        return self.name or self.path

    @property
    def source_tree(self) -> SourceTree:
        return SourceTree.BUILT_PRODUCTS_DIR if self.type else SourceTree.GROUP

    def properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {}
        if self.type:
            props["explicitFileType"] = self.type
            props["includeInIndex"] = 0
        else:
            ext = find_extension(self.name or self.path)
            if FileType.is_explicit(ext):
                props["explicitFileType"] = FileType.from_extension(ext)
            else:
                props["lastKnownFileType"] = FileType.from_extension(ext)
        if self.name and self.name != self.path:
            props["name"] = self.name
        props["path"] = self.path
        props["sourceTree"] = self.source_tree
        return props


@dataclass(eq=False)
class PBXBuildFile(XcodeObject):
    isa = PBXObjectClass.PBXBuildFile
    one_line = True

    file_reference: PBXFileReference = field(repr=False)
    build_phase: "PBXBuildPhase" = field(repr=False)
    compiler_flag: CompilerFlags = CompilerFlags.NONE

    def key(self) -> str:
        return f"{self.file_reference.key()} in {self.build_phase.key()}"

    def properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {"fileRef": Reference(self.file_reference)}
        if self.compiler_flag is CompilerFlags.HELP:
            props["settings"] = {"COMPILER_FLAGS": "--help"}
        return props


@dataclass(eq=False)
class PBXBuildPhase(XcodeObject):
    files: List[PBXBuildFile] = field(default_factory=list)

    def owned(self) -> Iterator[XcodeObject]:
        return iter(self.files)

    def add_build_file(
        self,
        file_reference: PBXFileReference,
        compiler_flag: CompilerFlags = CompilerFlags.NONE,
    ) -> PBXBuildFile:
        build_file = PBXBuildFile(file_reference, self, compiler_flag)
        self.files.append(build_file)
        return build_file

    def properties(self) -> Dict[str, Any]:
        return {
            "buildActionMask": BUILD_ACTION_MASK,
            "files": list(self.files),
            "runOnlyForDeploymentPostprocessing": 0,
        }


@dataclass(eq=False)
class PBXSourcesBuildPhase(PBXBuildPhase):
    isa = PBXObjectClass.PBXSourcesBuildPhase

    def key(self) -> str:
        return "Sources"


@dataclass(eq=False)
class PBXFrameworksBuildPhase(PBXBuildPhase):
    isa = PBXObjectClass.PBXFrameworksBuildPhase

    def key(self) -> str:
        return "Frameworks"


# Runs the build script that delegates the actual build to ninja
@dataclass(eq=False)
class PBXShellScriptBuildPhase(PBXBuildPhase):
    isa = PBXObjectClass.PBXShellScriptBuildPhase

    target_name: str = ""
    shell_script: str = ""
    shell_path: str = "/usr/bin/python3"

    def key(self) -> str:
        return f'Action "Compile and copy {self.target_name} via ninja"'

    def properties(self) -> Dict[str, Any]:
        props = super().properties()
        props.update(
            {
                "inputPaths": [],
                "name": self.key(),
                "outputPaths": [],
                "shellPath": self.shell_path,
                "shellScript": self.shell_script,
                "showEnvVarsInLog": 0,
            }
        )
        return props


@dataclass(eq=False)
class PBXGroup(XcodeObject):
    isa = PBXObjectClass.PBXGroup

    path: str = ""
    name: str = ""
    # Children are kept sorted (groups first, then by name) unless disabled
    autosorted: bool = True
    children: List[Union["PBXGroup", PBXFileReference]] = field(default_factory=list)

    def key(self) -> str:
        return self.name or self.path

    def owned(self) -> Iterator[XcodeObject]:
        return iter(self.children)

    def add_child(self, child: Union["PBXGroup", PBXFileReference]):
        if not self.autosorted:
            self.children.append(child)
            return child
        sort_key = _group_child_sort_key(child)
        index = next(
            (
                i
                for i, other in enumerate(self.children)
                if sort_key < _group_child_sort_key(other)
            ),
            len(self.children),
        )
        self.children.insert(index, child)
        return child

    def add_source_file(self, source_path: str) -> PBXFileReference:
        """
        Add a file, creating one nested group per directory component.

        Adding the same path twice returns the existing file reference.
        """
        assert source_path
        component, sep, remainder = source_path.partition("/")
        if not sep:
            for child in self.children:
                if isinstance(child, PBXFileReference) and child.path == component:
                    return child
            return self.add_child(PBXFileReference(name=component, path=component))

        group = next(
            (
                child
                for child in self.children
                if isinstance(child, PBXGroup) and child.name == component
            ),
            None,
        )
        if group is None:
            group = self.add_child(PBXGroup(path=component, name=component))
        return group.add_source_file(remainder)

    def properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {"children": list(self.children)}
        if self.name:
            props["name"] = self.name
        if self.path:
            props["path"] = self.path
        props["sourceTree"] = SourceTree.GROUP
        return props


def _group_child_sort_key(child: XcodeObject):
    return (0 if isinstance(child, PBXGroup) else 1, child.key())


@dataclass(eq=False)
class XCBuildConfiguration(XcodeObject):
    isa = PBXObjectClass.XCBuildConfiguration

    name: str
    build_settings: PBXAttributes

    def key(self) -> str:
        return self.name

    def properties(self) -> Dict[str, Any]:
        return {"buildSettings": self.build_settings, "name": self.name}


@dataclass(eq=False)
class XCConfigurationList(XcodeObject):
    isa = PBXObjectClass.XCConfigurationList

    config_name: str
    attributes: PBXAttributes
    owner: XcodeObject = field(repr=False)
    configurations: List[XCBuildConfiguration] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        self.configurations.append(
            XCBuildConfiguration(self.config_name, dict(self.attributes))
        )

    def key(self) -> str:
        return f'Build configuration list for {self.owner.isa.value} "{self.owner.key()}"'

    def owned(self) -> Iterator[XcodeObject]:
        return iter(self.configurations)

    def properties(self) -> Dict[str, Any]:
        return {
            "buildConfigurations": list(self.configurations),
            "defaultConfigurationIsVisible": 1,
            "defaultConfigurationName": self.configurations[0].name,
        }


@dataclass(eq=False)
class PBXContainerItemProxy(XcodeObject):
    isa = PBXObjectClass.PBXContainerItemProxy

    project: "PBXProject" = field(repr=False)
    target: "PBXTarget" = field(repr=False)

    def key(self) -> str:
        return self.target.key()

    def comment(self) -> str:
        return "PBXContainerItemProxy"

    def properties(self) -> Dict[str, Any]:
        return {
            "containerPortal": Reference(self.project),
            "proxyType": ProxyType.TARGET_DEPENDENCY,
            "remoteGlobalIDString": Reference(self.target, with_comment=False),
            "remoteInfo": self.target.key(),
        }


# Build order edge, owns the proxy describing the target depended upon
@dataclass(eq=False)
class PBXTargetDependency(XcodeObject):
    isa = PBXObjectClass.PBXTargetDependency

    target: "PBXTarget" = field(repr=False)
    container_item_proxy: PBXContainerItemProxy = field(repr=False)

    def key(self) -> str:
        return "PBXTargetDependency"

    def owned(self) -> Iterator[XcodeObject]:
        yield self.container_item_proxy

    def properties(self) -> Dict[str, Any]:
        return {
            "target": Reference(self.target),
            "targetProxy": self.container_item_proxy,
        }


@dataclass(eq=False)
class PBXTarget(XcodeObject):
    name: str
    shell_script: str = field(repr=False)
    config_name: str
    attributes: PBXAttributes
    configurations: XCConfigurationList = field(init=False, repr=False)
    build_phases: List[PBXBuildPhase] = field(init=False, default_factory=list)
    dependencies: List[PBXTargetDependency] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        self.configurations = XCConfigurationList(
            self.config_name, self.attributes, self
        )
        if self.shell_script:
            self.build_phases.append(
                PBXShellScriptBuildPhase(
                    target_name=self.name, shell_script=self.shell_script
                )
            )

    def key(self) -> str:
        return self.name

    def owned(self) -> Iterator[XcodeObject]:
        yield self.configurations
        yield from self.build_phases
        yield from self.dependencies

    def add_dependency(self, target: "PBXTarget", project: "PBXProject") -> PBXTargetDependency:
        dependency = PBXTargetDependency(
            target=target,
            container_item_proxy=PBXContainerItemProxy(project=project, target=target),
        )
        self.dependencies.append(dependency)
        return dependency


@dataclass(eq=False)
class PBXAggregateTarget(PBXTarget):
    isa = PBXObjectClass.PBXAggregateTarget

    def properties(self) -> Dict[str, Any]:
        return {
            "buildConfigurationList": self.configurations,
            "buildPhases": list(self.build_phases),
            "dependencies": list(self.dependencies),
            "name": self.name,
            "productName": self.name,
        }


@dataclass(eq=False)
class PBXNativeTarget(PBXTarget):
    isa = PBXObjectClass.PBXNativeTarget

    product_type: str
    product_name: str
    product_reference: PBXFileReference = field(repr=False)
    source_build_phase: PBXSourcesBuildPhase = field(init=False, repr=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.source_build_phase = PBXSourcesBuildPhase()
        self.build_phases.append(self.source_build_phase)
        self.build_phases.append(PBXFrameworksBuildPhase())

    @property
    def output_dir(self) -> str:
        return self.attributes.get("CONFIGURATION_BUILD_DIR", "")

    # Index entries of the target (files Xcode sees in its sources phase)
    @property
    def indexed_files(self) -> List[PBXBuildFile]:
        return list(self.source_build_phase.files)

    def add_file_for_indexing(
        self,
        file_reference: PBXFileReference,
        compiler_flag: CompilerFlags = CompilerFlags.NONE,
    ) -> PBXBuildFile:
        return self.source_build_phase.add_build_file(file_reference, compiler_flag)

    def properties(self) -> Dict[str, Any]:
        return {
            "buildConfigurationList": self.configurations,
            "buildPhases": list(self.build_phases),
            "buildRules": [],
            "dependencies": list(self.dependencies),
            "name": self.name,
            "productName": self.product_name,
            "productReference": Reference(self.product_reference),
            "productType": self.product_type,
        }


@dataclass(eq=False)
class PBXProject(XcodeObject):
    isa = PBXObjectClass.PBXProject

    name: str
    config_name: str
    source_path: str
    attributes: PBXAttributes
    configurations: XCConfigurationList = field(init=False, repr=False)
    main_group: PBXGroup = field(init=False, repr=False)
    sources: PBXGroup = field(init=False, repr=False)
    products: PBXGroup = field(init=False, repr=False)
    targets: List[PBXTarget] = field(init=False, default_factory=list)
    target_for_indexing: Optional[PBXNativeTarget] = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        self.main_group = PBXGroup(autosorted=False)
        self.sources = self.main_group.add_child(
            PBXGroup(path=self.source_path, name="Source")
        )
        self.products = self.main_group.add_child(PBXGroup(name="Products"))
        self.configurations = XCConfigurationList(
            self.config_name, self.attributes, self
        )

    def key(self) -> str:
        return self.name

    def comment(self) -> str:
        return "Project object"

    def owned(self) -> Iterator[XcodeObject]:
        yield self.configurations
        yield self.main_group
        yield from self.targets

    def add_source_file_to_indexing_target(
        self, source_path: str, compiler_flag: CompilerFlags = CompilerFlags.NONE
    ) -> None:
        if self.target_for_indexing is None:
            self.add_indexing_target()
        self.add_source_file(source_path, compiler_flag, self.target_for_indexing)

    def add_source_file(
        self,
        source_path: str,
        compiler_flag: CompilerFlags,
        target: Optional[PBXNativeTarget],
    ) -> PBXFileReference:
        file_reference = self.sources.add_source_file(source_path)
        if find_extension(source_path) in INDEXABLE_EXTENSIONS:
            assert target is not None
            target.add_file_for_indexing(file_reference, compiler_flag)
        return file_reference

    def add_aggregate_target(self, name: str, shell_script: str) -> PBXAggregateTarget:
        attributes: PBXAttributes = {
            "CODE_SIGNING_REQUIRED": "NO",
            "CONFIGURATION_BUILD_DIR": ".",
            "PRODUCT_NAME": name,
        }
        target = PBXAggregateTarget(name, shell_script, self.config_name, attributes)
        self.targets.append(target)
        return target

    # Hidden target owning every indexable source so Xcode indexes them
    def add_indexing_target(self) -> PBXNativeTarget:
        assert self.target_for_indexing is None
        attributes: PBXAttributes = {
            "EXECUTABLE_PREFIX": "",
            "HEADER_SEARCH_PATHS": self.sources.path,
            "PRODUCT_NAME": "sources",
        }
        product_reference = self.products.add_child(
            PBXFileReference(name="", path="sources", type=FileType.EXECUTABLE.value)
        )
        self.target_for_indexing = PBXNativeTarget(
            "sources",
            "",
            self.config_name,
            attributes,
            ProductType.TOOL.value,
            "sources",
            product_reference,
        )
        self.targets.append(self.target_for_indexing)
        return self.target_for_indexing

    def add_native_target(
        self,
        name: str,
        type: str,
        output_name: str,
        output_type: str,
        output_dir: str,
        shell_script: str,
        extra_attributes: Optional[PBXAttributes] = None,
    ) -> PBXNativeTarget:
        ext = find_extension(output_name)
        product_reference = self.products.add_child(
            PBXFileReference(
                name="",
                path=output_name,
                type=type or FileType.from_extension(ext).value,
            )
        )
        # PRODUCT_NAME is the basename of the product without its extension.
        product_name = strip_extension(find_filename(output_name))

        attributes: PBXAttributes = dict(extra_attributes or {})
        attributes["CODE_SIGNING_REQUIRED"] = "NO"
        attributes["CONFIGURATION_BUILD_DIR"] = output_dir
        attributes["PRODUCT_NAME"] = product_name
        attributes["EXCLUDED_SOURCE_FILE_NAMES"] = "*.*"

        target = PBXNativeTarget(
            name,
            shell_script,
            self.config_name,
            attributes,
            output_type,
            product_name,
            product_reference,
        )
        self.targets.append(target)
        return target

    def properties(self) -> Dict[str, Any]:
        return {
            "attributes": {
                "BuildIndependentTargetsInParallel": "YES",
                "LastUpgradeCheck": "1130",
            },
            "buildConfigurationList": self.configurations,
            "compatibilityVersion": "Xcode 3.2",
            "developmentRegion": "en",
            "hasScannedForEncodings": 1,
            "knownRegions": ["en", "Base"],
            "mainGroup": Reference(self.main_group, with_comment=False),
            "projectDirPath": "",
            "projectRoot": "",
            "targets": list(self.targets),
        }


def generate_id(seed: str, key: str, counter: int) -> XcodeID:
    """
    Derive a 96 bit identifier from the SHA-1 of "seed key counter".

    The 160 bit digest is folded into three 32 bit words by XOR-ing its
    consecutive 32 bit chunks (chunk i goes into word i % 3). Nothing detects
    two objects folding to the same value.
    """
    digest = hashlib.sha1(f"{seed} {key} {counter}".encode("utf-8")).digest()
    words = [0, 0, 0]
    for index in range(len(digest) // 4):
        chunk = int.from_bytes(digest[index * 4 : index * 4 + 4], "little")
        words[index % 3] ^= chunk
    return XcodeID(
        b"".join(word.to_bytes(4, "little") for word in words).hex().upper()
    )


def assign_ids(project: PBXProject) -> None:
    counter = itertools.count()

    def visitor(obj: XcodeObject) -> None:
        if obj.id is not None:
            raise RuntimeError(f"identifier already assigned to {obj.isa.value} {obj.key()!r}")
        obj.id = generate_id(project.name, obj.key(), next(counter))

    project.visit(visitor)
