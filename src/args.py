"""Argument parsing functionality for cudalis."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="cudalis",
        description=(
            "cudalis - Build a Docker image with a compatible Python, PyTorch and CUDA"
        ),
        add_help=True,
    )

    parser.add_argument("-p", "--python",
                        dest="PYTHON",
                        help="Python version, i.e: 3.10 (default: latest)",
                        action="store", type=str,
                        metavar="VERSION")
    parser.add_argument("-t", "--torch",
                        dest="TORCH",
                        help="PyTorch version, i.e: 1.13.1 (default: latest)",
                        action="store", type=str,
                        metavar="VERSION")
    parser.add_argument("-c", "--cuda",
                        dest="CUDA",
                        help="CUDA version, i.e: 11.7, or 'cpu' (default: latest)",
                        action="store", type=str,
                        metavar="VERSION")

    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--resolve-only",
                        dest="RESOLVE_ONLY",
                        help="Resolve versions and base image without building.",
                        action="store_true")
    parser.add_argument("--keep-base-image",
                        dest="KEEP_BASE_IMAGE",
                        help="Do not remove the pulled base image after the build.",
                        action="store_true",
                        default=None)
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Stream command output and log resolution details.",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
