"""Build pipeline: pull base image, provision a container, commit it."""
from __future__ import annotations

import logging
from typing import List

from constants import Constants
from versioning.models import ResolvedVersion

from .docker_client import DockerClient
from .exceptions import BuildError

logger = logging.getLogger(__name__)

SYSTEM_PACKAGES = (
    "curl build-essential libffi-dev libssl-dev zlib1g-dev liblzma-dev "
    "libbz2-dev libreadline-dev libsqlite3-dev libopencv-dev tk-dev git"
)


def image_tag_for(version: ResolvedVersion) -> str:
    return (
        f"{version.python_semantic_version()}"
        f"-pytorch{version.library_version}"
        f"-{version.accelerator_semantic_version()}"
    )


def image_name_for(version: ResolvedVersion) -> str:
    """Name of the committed image, e.g. ``cudalis:3.10-pytorch1.13.1-11.7``."""
    return f"{Constants.IMAGE_REPOSITORY}:{image_tag_for(version)}"


def provisioning_commands(version: ResolvedVersion) -> List[str]:
    """Shell steps that install the interpreter and library into the container."""
    python = version.python_semantic_version()
    return [
        f"apt-get update && apt-get install -y {SYSTEM_PACKAGES}",
        "curl https://pyenv.run | bash && "
        "echo 'export PATH=\"$HOME/.pyenv/bin:$PATH\"' >> ~/.bashrc",
        f"~/.pyenv/bin/pyenv install {python} && ~/.pyenv/bin/pyenv global {python}",
        f"~/.pyenv/shims/pip install {version.package_name}=={version.library_version} "
        f"-f {Constants.WHEEL_ROOT_URL}{version.accelerator_tag}",
    ]


def build_image(
    client: DockerClient,
    version: ResolvedVersion,
    base_image: str,
    keep_base_image: bool = False,
) -> str:
    """Build and commit an image for ``version`` on top of ``base_image``.

    The build container is removed whether or not provisioning succeeds.

    Returns:
        str: The committed image name.
    """
    logger.info(
        "Building image with python %s, torch %s, and cuda %s",
        version.python_semantic_version(),
        version.library_version,
        version.accelerator_semantic_version(),
    )
    image_name = image_name_for(version)

    client.pull_image(base_image)
    client.remove_stale_container(Constants.BUILD_CONTAINER_NAME)
    container = client.run_container(Constants.BUILD_CONTAINER_NAME, base_image)
    provisioned = False
    try:
        client.execute_commands(container, provisioning_commands(version))
        client.commit_container(container, Constants.IMAGE_REPOSITORY, image_tag_for(version))
        provisioned = True
    finally:
        try:
            client.remove_container(container)
        except BuildError as cleanup_error:
            if provisioned:
                raise
            # An in-flight provisioning error wins over the cleanup one
            logger.warning("Could not remove build container after failure: %s", cleanup_error)

    if not keep_base_image:
        client.remove_image(base_image)

    logger.info("Done! You can now use the image: %s", image_name)
    return image_name
