# Workspace embedded in the .xcodeproj. It holds the settings shared by every
# target of the project, notably which Xcode build system to use.

from typing import Dict

from ninjaxcode.config import BuildSystem, Options
from ninjaxcode.details.graph import BuildSettings
from ninjaxcode.details.paths import resolve_relative_file

WORKSPACE_DATA = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<Workspace\n"
    '   version = "1.0">\n'
    "   <FileRef\n"
    '      location = "self:">\n'
    "   </FileRef>\n"
    "</Workspace>\n"
)


def workspace_settings_contents(build_system: BuildSystem) -> str:
    result = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
        '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
        '<plist version="1.0">\n'
        "<dict>\n"
    )
    if build_system is BuildSystem.LEGACY:
        result += "\t<key>BuildSystemType</key>\n" "\t<string>Original</string>\n"
    result += "</dict>\n" "</plist>\n"
    return result


class XcodeWorkspace:
    def __init__(self, build_settings: BuildSettings, options: Options):
        self.build_settings = build_settings
        self.options = options

    # Maps the source absolute path of each workspace file to its content
    def files(self, name: str) -> Dict[str, str]:
        build_dir = self.build_settings.build_dir
        return {
            resolve_relative_file(
                build_dir, f"{name}/contents.xcworkspacedata"
            ): WORKSPACE_DATA,
            resolve_relative_file(
                build_dir, f"{name}/xcshareddata/WorkspaceSettings.xcsettings"
            ): workspace_settings_contents(self.options.build_system),
        }
