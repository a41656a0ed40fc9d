from typing import Mapping

# Template of the script run by the shell script build phase of every target.
# It invokes ninja and rewrites, in its output, the relative path to the
# source root found at the start of a path into an absolute path, so that
# Xcode can jump to the file of a diagnostic. A plain str.replace() would also
# rewrite the relative path when it appears in the middle of a longer path.
BUILD_SCRIPT_TEMPLATE = """
import re
import os
import subprocess
import sys

rel_root_src = '{rel_root_src}'
abs_root_src = os.path.abspath(rel_root_src) + '/'

build_target = '{build_target}'
ninja_binary = '{ninja_binary}'
ninja_params = [ '-C', '.' ]

{environ_script}

if build_target:
  ninja_params.append(build_target)
  print('Compile "' + build_target + '" via ninja')
else:
  print('Compile "all" via ninja')

process = subprocess.Popen(
    [ ninja_binary ] + ninja_params,
    stdout=subprocess.PIPE,
    stderr=subprocess.STDOUT,
    universal_newlines=True,
    encoding='utf-8',
    env=environ)

pattern = re.compile('(?<!/)' + re.escape(rel_root_src))

for line in iter(process.stdout.readline, ''):
  while True:
    match = pattern.search(line)
    if not match:
      break
    span = match.span()
    print(line[:span[0]], end='')
    print(abs_root_src, end='')
    line = line[span[1]:]
  print(line, flush=True, end='')

process.wait()

sys.exit(process.returncode)
"""

# Environment variables forwarded to ninja, with whether their value is
# captured when the project is generated (True) or read when the script runs.
SAFE_ENVIRONMENT_VARIABLES = [
    ("HOME", True),
    ("LANG", True),
    ("PATH", True),
    ("USER", True),
    ("TMPDIR", False),
    ("ICECC_VERSION", True),
    ("ICECC_CLANG_REMOTE_CPP", True),
]

DEFAULT_NINJA_EXECUTABLE = "ninja"


def get_ninja_executable(ninja_executable: str) -> str:
    return ninja_executable or DEFAULT_NINJA_EXECUTABLE


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def compute_script_environ(environ: Mapping[str, str]) -> str:
    lines = ["environ = {}"]
    for name, capture_at_generation in SAFE_ENVIRONMENT_VARIABLES:
        if capture_at_generation:
            value = quote(environ.get(name, ""))
        else:
            value = f"os.environ.get('{name}', '')"
        lines.append(f"environ['{name}'] = {value}")
    return "\n".join(lines)


def get_build_script(
    target_name: str,
    ninja_executable: str,
    root_src_dir: str,
    environ: Mapping[str, str],
) -> str:
    """
    Render the build script for target_name ("" builds everything).

    Args:
        target_name: Ninja target to build, empty for the default target.
        ninja_executable: Path to ninja, empty for "ninja".
        root_src_dir: Source root relative to the build directory.
        environ: Environment captured at generation time.
    """
    return BUILD_SCRIPT_TEMPLATE.format(
        rel_root_src=root_src_dir,
        build_target=target_name,
        ninja_binary=get_ninja_executable(ninja_executable),
        environ_script=compute_script_environ(environ),
    )
