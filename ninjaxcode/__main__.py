from argparse import ArgumentParser
from pathlib import Path
import sys

from ninjaxcode.config import BuildSystem, Options
from ninjaxcode.details.graph_loader import load_build_graph
from ninjaxcode.errors import GenerationError
from ninjaxcode.generators.xcode import XcodeWriter


def main(argv=None):
    parser = ArgumentParser(
        description="Generate an Xcode project building through ninja."
    )
    parser.add_argument("graph", type=Path, help="JSON description of the build graph")
    parser.add_argument("--root", type=Path, default=None, help="source root")
    parser.add_argument("--project-name", type=str, default="all")
    parser.add_argument("--root-target", type=str, default="")
    parser.add_argument("--ninja-executable", type=str, default="")
    parser.add_argument(
        "--filters", type=str, default="", help="';'-separated label patterns"
    )
    parser.add_argument(
        "--build-system",
        choices=[b.value for b in BuildSystem],
        default=BuildSystem.LEGACY.value,
    )
    args = parser.parse_args(argv)

    try:
        options = Options(
            project_name=args.project_name,
            root_target_name=args.root_target,
            ninja_executable=args.ninja_executable,
            dir_filters_string=args.filters,
            build_system=args.build_system,
        )
        build_settings, graph, tracker = load_build_graph(args.graph, args.root)
        writer = XcodeWriter(options, build_settings, graph, tracker)
        written = writer()
    except GenerationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for path in written:
        print(f"generated {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
