"""cudalis - build a Docker image with a compatible Python, PyTorch and CUDA.

    Returns:
        int: Exit code
"""
import logging
import os
import sys

from constants import Constants, ExitCodes
from common.logging_utils import configure_logging
from args import parse_args
from cli_config import ConfigError, apply_constant_overrides, load_config, merge_cli
from versioning.errors import FetchError, ResolutionError
from versioning.fetchers import HttpIndexFetcher
from versioning.models import ResolutionConstraints
from versioning.parser import format_accelerator_constraint, format_python_constraint, host_platform
from versioning.resolver import VersionResolver

logger = logging.getLogger(__name__)


def build_constraints(settings, os_name=None):
    """Turn effective CLI/config settings into resolution constraints.

    On macOS there is no CUDA build, so an unset accelerator becomes "cpu".
    """
    accelerator = format_accelerator_constraint(settings.get("cuda"))
    if os_name is None:
        os_name, _ = host_platform()
    if accelerator is None and os_name == "macos":
        accelerator = Constants.CPU_SENTINEL
    torch = (settings.get("torch") or "").strip()
    return ResolutionConstraints(
        python=format_python_constraint(settings.get("python")),
        library=torch or None,
        accelerator=accelerator,
    )


def _setup_logging(args):
    if args.VERBOSE:
        os.environ[Constants.LOG_LEVEL_ENV] = "DEBUG"
    elif getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.LOG_LEVEL_ENV] = str(args.LOG_LEVEL).upper()
    configure_logging(getattr(args, "LOG_FILE", None))


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    try:
        cfg = load_config(args.CONFIG)
        apply_constant_overrides(cfg)
        settings = merge_cli(args, cfg)
    except ConfigError as e:
        logger.error("%s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    constraints = build_constraints(settings)

    resolver = VersionResolver(HttpIndexFetcher(Constants.INDEX_URL, Constants.TAG_REGISTRY_URL))
    try:
        version = resolver.resolve(constraints)
        logger.info(
            "Resolved python %s, torch %s, and cuda %s",
            version.python_semantic_version(),
            version.library_version,
            version.accelerator_semantic_version(),
        )
        base_image = resolver.resolve_base_image(version)
    except FetchError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except ResolutionError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)
    logger.info("Base image: %s", base_image)

    if args.RESOLVE_ONLY:
        sys.exit(ExitCodes.SUCCESS.value)

    # Lazy import to avoid loading the docker SDK for --resolve-only
    from builder import BuildError, DockerClient, build_image  # pylint: disable=import-outside-toplevel
    try:
        client = DockerClient(verbose=args.VERBOSE)
        build_image(client, version, base_image, keep_base_image=settings["keep_base_image"])
    except BuildError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.BUILD_ERROR.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
