from pathlib import Path

from ninjaxcode.errors import OutputWriteError


def write_file_if_changed(path: Path, contents: str) -> bool:
    new_contents = contents.encode("utf-8")
    # Check if previous version matches and early exit to avoid bumping timestamps unnecessarily...
    try:
        with path.open("rb") as f:
            old_contents = f.read()
        if old_contents == new_contents:
            return False
    except FileNotFoundError:
        pass
    except OSError as e:
        raise OutputWriteError(f"failed to read {path}: {e.strerror or e}") from e
    # Write new contents if needed...
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as f:
            f.write(new_contents)
    except OSError as e:
        raise OutputWriteError(f"failed to write {path}: {e.strerror or e}") from e
    return True
