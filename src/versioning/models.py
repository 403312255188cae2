"""Data models for artifact parsing and version resolution."""

from dataclasses import dataclass
from typing import Optional

from constants import Constants


@dataclass(frozen=True)
class PackageArtifact:
    """One wheel entry from the package index listing."""
    package_name: str
    library_version: str
    python_tag: str  # e.g. "cp310"
    os_tag: str  # normalized, e.g. "linux_x86_64"
    accelerator_tag: str  # "cpu" or e.g. "cu117"
    source_reference: str  # href as found in the listing

    @property
    def is_cpu(self) -> bool:
        """True for CPU-only builds."""
        return self.accelerator_tag == Constants.CPU_SENTINEL

    def python_semantic_version(self) -> str:
        """Dotted interpreter version, e.g. "cp310" -> "3.10".

        The tag is read as a one-digit major followed by the minor digits.
        This string names the committed image and is passed to
        ``pyenv install``, so "cp310" must not collapse to "3.1".
        """
        code = self.python_tag.replace(Constants.PYTHON_TAG_PREFIX, "")
        return f"{code[:1]}.{code[1:]}"

    def accelerator_semantic_version(self) -> str:
        """Dotted accelerator version, e.g. "cu117" -> "11.7"; "cpu" stays "cpu".

        The tag is read as a fixed-width code: two characters of major
        version, then the minor version.
        """
        if self.is_cpu:
            return Constants.CPU_SENTINEL
        code = self.accelerator_tag.replace(Constants.ACCELERATOR_PREFIX, "")
        return f"{code[:2]}.{code[2:]}"


@dataclass(frozen=True)
class ResolutionConstraints:
    """Optional per-dimension filters; None means "latest available"."""
    python: Optional[str] = None
    library: Optional[str] = None
    accelerator: Optional[str] = None

    def describe(self) -> str:
        """Render the constraints for log output."""
        return (
            f"python {self.python or 'latest'}, "
            f"torch {self.library or 'latest'}, "
            f"cuda {self.accelerator or 'latest'}"
        )


@dataclass(frozen=True)
class TagEntry:
    """A single tag from the image registry."""
    name: str


# The resolver's answer is the surviving artifact itself.
ResolvedVersion = PackageArtifact

# Fully qualified image reference, e.g. "nvidia/cuda:11.7.1-devel-ubuntu22.04".
BaseImageTag = str
