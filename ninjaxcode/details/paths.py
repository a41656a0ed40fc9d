import posixpath
from pathlib import Path
from typing import Optional

from ninjaxcode.errors import PathResolutionError

# Paths in the build graph are either "source absolute" (//foo/bar.cc, relative
# to the source root) or "system absolute" (/usr/include/stdio.h). Directories
# always end with a slash.


def is_source_absolute(path: str) -> bool:
    return path.startswith("//")


def is_system_absolute(path: str) -> bool:
    return path.startswith("/") and not is_source_absolute(path)


def is_string_in_output_dir(build_dir: str, path: str) -> bool:
    return path.startswith(build_dir)


def find_filename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def find_extension(path: str) -> str:
    filename = find_filename(path)
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1]


def strip_extension(path: str) -> str:
    filename = find_filename(path)
    if "." not in filename:
        return filename
    return filename.rsplit(".", 1)[0]


def _source_relative(path: str) -> str:
    # "//" -> ".", "//foo/bar/" -> "foo/bar"
    return posixpath.normpath(path[2:] or ".")


def rebase_path(
    input_path: str, dest_dir: str, source_root: Optional[Path] = None
) -> str:
    """
    Express input_path relative to dest_dir.

    Both are source absolute unless source_root is given, in which case
    input_path may also be system absolute. A trailing slash on input_path is
    preserved so directories stay recognisable (e.g. "//" seen from
    "//out/Debug/" is "../../").
    """
    if not is_source_absolute(dest_dir):
        raise PathResolutionError(f"'{dest_dir}' is not a source absolute directory")
    if is_source_absolute(input_path):
        rel = posixpath.relpath(_source_relative(input_path), _source_relative(dest_dir))
    elif is_system_absolute(input_path) and source_root is not None:
        dest = posixpath.join(source_root.as_posix(), _source_relative(dest_dir))
        rel = posixpath.relpath(input_path, posixpath.normpath(dest))
    else:
        raise PathResolutionError(
            f"cannot rebase '{input_path}' onto '{dest_dir}'"
        )
    if input_path.endswith("/") and not rel.endswith("/"):
        rel += "/"
    return rel


def resolve_relative_file(base_dir: str, relative: str) -> str:
    """Resolve a relative file name against a source absolute directory."""
    if not is_source_absolute(base_dir) or not base_dir.endswith("/"):
        raise PathResolutionError(
            f"'{base_dir}' is not a source absolute directory"
        )
    if not relative or relative.endswith("/") or relative.startswith("/"):
        raise PathResolutionError(f"'{relative}' is not a relative file name")
    joined = posixpath.normpath(posixpath.join(base_dir[2:], relative))
    if joined == ".." or joined.startswith("../"):
        raise PathResolutionError(
            f"'{relative}' resolved against '{base_dir}' escapes the source root"
        )
    return "//" + joined


def source_file_for_system_path(source_root: Path, path: Path) -> Optional[str]:
    """Turn a system path under source_root into a source absolute one."""
    try:
        rel = path.relative_to(source_root)
    except ValueError:
        return None
    return "//" + rel.as_posix()
