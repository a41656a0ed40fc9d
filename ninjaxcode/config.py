from enum import Enum
from typing import Union

from ninjaxcode.errors import ConfigurationError


class BuildSystem(Enum):
    LEGACY = "legacy"
    NEW = "new"


class Options:
    def __init__(
        self,
        project_name: str = "all",
        root_target_name: str = "",
        ninja_executable: str = "",
        dir_filters_string: str = "",
        build_system: Union[str, BuildSystem] = BuildSystem.LEGACY,
        **kwargs
    ):
        if not project_name:
            raise ConfigurationError("project name must not be empty")
        try:
            build_system = BuildSystem(build_system)
        except ValueError:
            raise ConfigurationError(f"unknown build system {build_system!r}")
        self.project_name = project_name
        self.root_target_name = root_target_name
        self.ninja_executable = ninja_executable
        self.dir_filters_string = dir_filters_string
        self.build_system = build_system
        self.__dict__.update(kwargs)
