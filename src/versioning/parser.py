"""Listing-line parsing and constraint normalization utilities."""

import platform
from typing import Optional, Tuple

from constants import Constants, PLATFORM_REPLACEMENTS

from .models import PackageArtifact

_HOST_OS_NAMES = {
    "darwin": "macos",
    "linux": "linux",
    "windows": "windows",
}


def normalize_platform(raw: str) -> str:
    """Apply the ordered platform replacements to a wheel platform field."""
    normalized = raw
    for old, new in PLATFORM_REPLACEMENTS:
        normalized = normalized.replace(old, new)
    return normalized


def parse_artifact_line(line: str) -> Optional[PackageArtifact]:
    """Parse one line of the index listing into a PackageArtifact.

    Returns None for any line that is not a wheel link under a CPU or
    accelerator directory; such lines are routine in the listing.
    """
    quoted = line.split('"')
    if len(quoted) < 2:
        return None
    href = quoted[1]
    if not (href.startswith(Constants.CPU_SENTINEL) or href.startswith(Constants.ACCELERATOR_PREFIX)):
        return None

    segments = href.split("/")
    if len(segments) < 2:
        return None
    accelerator = segments[0].replace(Constants.CUDNN_SUFFIX, "")

    fields = segments[1].split("-")
    if len(fields) < 5:
        return None
    name = fields[0]
    version = fields[1].split(Constants.BUILD_METADATA_MARKER)[0]
    python_tag = fields[2]
    if not name or not version or not python_tag:
        return None

    return PackageArtifact(
        package_name=name,
        library_version=version,
        python_tag=python_tag,
        os_tag=normalize_platform(fields[4]),
        accelerator_tag=accelerator,
        source_reference=href,
    )


def host_platform() -> Tuple[str, str]:
    """Return the running (os_name, arch) in the index's canonical names."""
    system = platform.system().lower()
    os_name = _HOST_OS_NAMES.get(system, system)
    arch = normalize_platform(platform.machine().lower())
    return os_name, arch


def _dotted_to_tag(value: Optional[str], prefix: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if value.startswith(prefix):
        return value
    parts = value.split(".")
    return prefix + "".join(parts[:2])


def format_python_constraint(value: Optional[str]) -> Optional[str]:
    """Turn a CLI interpreter version ("3.10") into an index tag ("cp310")."""
    return _dotted_to_tag(value, Constants.PYTHON_TAG_PREFIX)


def format_accelerator_constraint(value: Optional[str]) -> Optional[str]:
    """Turn a CLI accelerator version ("11.7") into an index tag ("cu117").

    "cpu" passes through unchanged.
    """
    if value is not None and value.strip().lower() == Constants.CPU_SENTINEL:
        return Constants.CPU_SENTINEL
    return _dotted_to_tag(value, Constants.ACCELERATOR_PREFIX)
