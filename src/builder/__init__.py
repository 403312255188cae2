"""Container image build pipeline driven through the docker SDK."""

from .docker_client import DockerClient
from .exceptions import BuildError, ProvisioningError
from .pipeline import build_image, image_name_for, provisioning_commands

__all__ = [
    "BuildError",
    "DockerClient",
    "ProvisioningError",
    "build_image",
    "image_name_for",
    "provisioning_commands",
]
