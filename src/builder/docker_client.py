"""Thin wrapper over the docker SDK for the operations the build needs.

Every SDK failure surfaces as ``BuildError`` so the CLI has one exception
type to map for the whole pipeline.
"""
from __future__ import annotations

import codecs
import logging
import sys
from collections import deque
from typing import Any, Iterable, Optional

import docker
from docker.errors import DockerException, NotFound

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer

from .exceptions import BuildError, ProvisioningError

logger = logging.getLogger(__name__)

OUTPUT_TAIL_LINES = 20


class DockerClient:
    """Container runtime operations used by the build pipeline.

    Args:
        verbose: Stream command output to stdout while it runs.
        client: Pre-built ``docker.DockerClient``; connects from the
            environment when omitted.
    """

    def __init__(self, verbose: bool = False, client: Optional[Any] = None):
        self.verbose = verbose
        if client is None:
            try:
                client = docker.from_env(timeout=Constants.DOCKER_TIMEOUT)
            except DockerException as e:
                raise BuildError(f"Failed to connect to Docker daemon: {e}") from e
        self._client = client

    def pull_image(self, image: str) -> None:
        logger.info("Pulling the base image: %s", image)
        try:
            with Timer() as t:
                self._client.images.pull(image)
        except DockerException as e:
            raise BuildError(f"Error pulling the base image: {e}", image=image) from e
        if is_debug_enabled(logger):
            logger.debug(
                "Image pulled",
                extra=extra_context(event="image_pull", component="docker", duration_ms=t.duration_ms()),
            )

    def remove_stale_container(self, name: str) -> bool:
        """Remove a leftover container called ``name``; return whether one existed."""
        try:
            container = self._client.containers.get(name)
        except NotFound:
            return False
        except DockerException as e:
            raise BuildError(f"Error looking up container {name}: {e}") from e
        logger.info("Removing existing container: %s", name)
        self._remove(container)
        return True

    def run_container(self, name: str, image: str) -> Any:
        """Create and start a detached container kept alive by its tty."""
        logger.info("Running container %s with image %s", name, image)
        try:
            return self._client.containers.run(
                image,
                name=name,
                detach=True,
                tty=True,
                stdin_open=True,
            )
        except DockerException as e:
            raise BuildError(f"Error starting container {name}: {e}", image=image) from e

    def execute_commands(self, container: Any, commands: Iterable[str]) -> None:
        for command in commands:
            self.execute_command(container, command)

    def execute_command(self, container: Any, command: str) -> None:
        """Run ``command`` with bash inside ``container``.

        Raises:
            ProvisioningError: If the command exits non-zero.
        """
        logger.info("%s", command)
        api = self._client.api
        tail: deque = deque(maxlen=OUTPUT_TAIL_LINES)
        try:
            exec_id = api.exec_create(
                container.id,
                ["bash", "-c", command],
                stdout=True,
                stderr=True,
                tty=True,
                environment={"DEBIAN_FRONTEND": "noninteractive"},
            )["Id"]
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            partial = ""
            for chunk in api.exec_start(exec_id, stream=True, tty=True):
                text = decoder.decode(chunk)
                if self.verbose:
                    sys.stdout.write(text)
                    sys.stdout.flush()
                # Lines and characters can span chunks
                lines = (partial + text).splitlines(keepends=True)
                partial = lines.pop() if lines and not lines[-1].endswith("\n") else ""
                tail.extend(line.rstrip("\r\n") for line in lines)
            partial += decoder.decode(b"", final=True)
            if partial:
                tail.append(partial.rstrip("\r"))
            exit_code = api.exec_inspect(exec_id).get("ExitCode")
        except DockerException as e:
            raise BuildError(f"Error running the command: {e}") from e

        if exit_code:
            raise ProvisioningError(command, exit_code, "\n".join(tail))

    def commit_container(self, container: Any, repository: str, tag: str) -> None:
        logger.info("Committing container %s to image %s:%s", container.name, repository, tag)
        try:
            container.commit(repository=repository, tag=tag)
        except DockerException as e:
            raise BuildError(f"Error committing container: {e}", image=f"{repository}:{tag}") from e

    def remove_container(self, container: Any) -> None:
        logger.info("Removing container %s", container.name)
        self._remove(container)

    def remove_image(self, image: str) -> None:
        logger.info("Removing image %s", image)
        try:
            self._client.images.remove(image=image)
        except DockerException as e:
            raise BuildError(f"Error removing image: {e}", image=image) from e

    def _remove(self, container: Any) -> None:
        try:
            container.remove(force=True, v=True)
        except DockerException as e:
            raise BuildError(f"Error removing container {container.name}: {e}") from e
