"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3
    BUILD_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    INDEX_URL = "https://download.pytorch.org/whl/torch_stable.html"
    WHEEL_ROOT_URL = "https://download.pytorch.org/whl/"
    TAG_REGISTRY_URL = "https://hub.docker.com/v2/repositories/nvidia/cuda/tags/"
    TAG_PAGE_SIZE = 100

    TARGET_PACKAGE = "torch"
    CPU_SENTINEL = "cpu"
    ACCELERATOR_PREFIX = "cu"
    PYTHON_TAG_PREFIX = "cp"
    CUDNN_SUFFIX = "_pypi_cudnn"
    BUILD_METADATA_MARKER = "%2B"
    WHEEL_SUFFIX = ".whl"

    CPU_BASE_IMAGE = "ubuntu:22.04"
    ACCELERATOR_IMAGE_REPOSITORY = "nvidia/cuda"
    IMAGE_TAG_MARKERS = ("ubuntu", "devel")
    IMAGE_REPOSITORY = "cudalis"
    BUILD_CONTAINER_NAME = "cudalis_setup"
    DOCKER_TIMEOUT = 3600  # Seconds; provisioning steps compile interpreters

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "CUDALIS_LOG_LEVEL"
    CONFIG_ENV = "CUDALIS_CONFIG"
    CONFIG_LOCATIONS = ["cudalis.yml", "~/.config/cudalis/config.yml"]

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3


# Ordered literal replacements that turn wheel platform tokens into the
# canonical OS/architecture names. All entries apply cumulatively.
PLATFORM_REPLACEMENTS = [
    ("win", "windows"),
    ("macosx", "macos"),
    ("manylinux", "linux"),
    ("amd64", "x86_64"),
    ("arm64", "aarch64"),
    (Constants.WHEEL_SUFFIX, ""),
]
