"""Exceptions raised by the container build pipeline."""

from typing import Optional


class BuildError(Exception):
    """A container runtime operation failed."""

    def __init__(self, message: str, image: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.image = image


class ProvisioningError(BuildError):
    """A provisioning command exited with a non-zero status."""

    def __init__(self, command: str, exit_code: int, output_tail: str = ""):
        super().__init__(f"Command exited with status {exit_code}: {command}")
        self.command = command
        self.exit_code = exit_code
        self.output_tail = output_tail

    def __str__(self) -> str:
        if self.output_tail:
            return f"{self.message}\n{self.output_tail}"
        return self.message
