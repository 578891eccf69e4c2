"""Main CLI entry point for crossbuild."""

import sys

from crossbuild_tooling.cli import docker_cmd, pipeline_cmd


def _usage() -> None:
    print("Usage: crossbuild <command> [args...]", file=sys.stderr)
    print("Commands:", file=sys.stderr)
    print("  resolve <platform>    - Print the target triple for a platform", file=sys.stderr)
    print(
        "  bootstrap <platform>  - Install helper venv, rustup, pinned toolchain, target std",
        file=sys.stderr,
    )
    print("  build <platform>      - Bootstrap, then cargo zigbuild the binaries", file=sys.stderr)
    print(
        "  package <platform>    - Copy built binaries to dist and build the scratch image",
        file=sys.stderr,
    )
    print(
        "  pipeline [platform]   - All stages (platform defaults to $TARGETPLATFORM; --verify checks the image)",
        file=sys.stderr,
    )
    print("  docker <cmd> ...      - generate-dockerfile, verify-image", file=sys.stderr)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "resolve":
        pipeline_cmd.run_resolve_argv()
    elif command in ("bootstrap", "build"):
        pipeline_cmd.run_stage_argv(command)
    elif command == "package":
        pipeline_cmd.run_package_argv()
    elif command == "pipeline":
        pipeline_cmd.run_pipeline_argv()
    elif command == "docker":
        docker_cmd.run_docker_argv()
    elif command in ("-h", "--help", "help"):
        _usage()
        sys.exit(0)
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
