"""`crossbuild resolve|bootstrap|build|package|pipeline` subcommands."""

import argparse
import sys

from crossbuild_tooling.cli.parse_common import add_common_args, configure_logging
from crossbuild_tooling.errors import UnsupportedPlatform
from crossbuild_tooling.pipeline import run, run_package_only
from crossbuild_tooling.platforms import platform_from_env, resolve


def run_resolve_argv(argv: list[str] | None = None) -> None:
    """Print the target triple for a platform; exit 2 when the platform is unsupported."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(prog="crossbuild resolve", description="Platform -> target triple")
    ap.add_argument("platform")
    args = ap.parse_args(argv)
    try:
        spec = resolve(args.platform)
    except UnsupportedPlatform as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(e.exit_code)
    print(spec.triple)
    sys.exit(0)


def run_stage_argv(stage: str, argv: list[str] | None = None) -> None:
    """Run the pipeline up to stage (bootstrap or build) for one platform."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(prog=f"crossbuild {stage}", description=f"Run stages up to {stage}")
    add_common_args(ap)
    args = ap.parse_args(argv)
    configure_logging(args.verbose)
    rc = run(args.platform, args.project_root, home=args.home, until=stage)
    sys.exit(rc)


def run_package_argv(argv: list[str] | None = None) -> None:
    """Package existing build outputs into the runtime image."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="crossbuild package", description="Package built binaries into a scratch image"
    )
    add_common_args(ap, with_home=False)
    ap.add_argument("--tag", default=None, help="Image tag (default: from crossbuild.yaml)")
    ap.add_argument(
        "--no-image", action="store_true", help="Stop after writing the dist dir and Dockerfile"
    )
    args = ap.parse_args(argv)
    configure_logging(args.verbose)
    rc = run_package_only(
        args.platform, args.project_root, tag=args.tag, build_image=not args.no_image
    )
    sys.exit(rc)


def run_pipeline_argv(argv: list[str] | None = None) -> None:
    """Full pipeline. Platform defaults to $TARGETPLATFORM."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="crossbuild pipeline", description="Resolve, bootstrap, build and package"
    )
    add_common_args(ap, platform_required=False)
    ap.add_argument("--tag", default=None, help="Image tag (default: from crossbuild.yaml)")
    ap.add_argument(
        "--no-image", action="store_true", help="Stop after writing the dist dir and Dockerfile"
    )
    ap.add_argument(
        "--verify",
        action="store_true",
        help="Check the built image's entrypoint, workdir and --version afterwards",
    )
    args = ap.parse_args(argv)
    configure_logging(args.verbose)
    platform = args.platform
    if platform is None:
        try:
            platform = platform_from_env()
        except UnsupportedPlatform as e:
            print(f"❌ {e}", file=sys.stderr)
            sys.exit(e.exit_code)
    rc = run(
        platform,
        args.project_root,
        home=args.home,
        tag=args.tag,
        build_image=not args.no_image,
        verify=args.verify,
    )
    sys.exit(rc)
