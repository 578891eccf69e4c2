"""`crossbuild docker` subcommands: generate-dockerfile, verify-image."""

import sys
from pathlib import Path

from crossbuild_tooling.config import load_config
from crossbuild_tooling.docker.generate_dockerfile import generate_dockerfile
from crossbuild_tooling.docker.verify_image import run as run_verify_image
from crossbuild_tooling.errors import ConfigError
from crossbuild_tooling.pipeline import ordered_binaries


def run_docker_argv(argv: list[str] | None = None) -> None:
    """Parse docker subcommand from argv and run. argv defaults to sys.argv[2:] when called from main."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    if not argv:
        print("crossbuild docker: missing subcommand", file=sys.stderr)
        print("  generate-dockerfile, verify-image", file=sys.stderr)
        sys.exit(1)
    cmd = argv[0]
    rest = argv[1:]
    project_root = Path.cwd()

    try:
        config = load_config(project_root)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(e.exit_code)

    if cmd == "generate-dockerfile":
        if not rest:
            print("Usage: crossbuild docker generate-dockerfile <dist_dir>", file=sys.stderr)
            sys.exit(1)
        dist = Path(rest[0])
        dist = (project_root / dist) if not dist.is_absolute() else dist
        generate_dockerfile(
            dist, ordered_binaries(config), config["primary_binary"], config["workdir"]
        )
        sys.exit(0)

    if cmd == "verify-image":
        if not rest:
            print(
                "Usage: crossbuild docker verify-image <tag> [--platform linux/amd64]",
                file=sys.stderr,
            )
            sys.exit(1)
        tag = rest[0]
        platform = None
        i = 1
        while i < len(rest):
            if rest[i] == "--platform" and i + 1 < len(rest):
                platform = rest[i + 1]
                i += 2
            else:
                i += 1
        rc = run_verify_image(
            tag,
            platform=platform,
            primary=config["primary_binary"],
            workdir=config["workdir"],
        )
        sys.exit(rc)

    print(f"Unknown docker subcommand: {cmd}", file=sys.stderr)
    sys.exit(1)
