"""Constraint-based resolver for (python, torch, cuda) triples and base images.

Every stage takes a tuple of candidates and returns a new tuple; version
ordering is plain string comparison throughout.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled

from .errors import NoCandidatesError, NoImageTagError
from .fetchers import IndexFetcher
from .models import BaseImageTag, PackageArtifact, ResolutionConstraints, ResolvedVersion, TagEntry
from .parser import host_platform, parse_artifact_line

logger = logging.getLogger(__name__)

Candidates = Tuple[PackageArtifact, ...]
Extractor = Callable[[PackageArtifact], str]


def python_tag(artifact: PackageArtifact) -> str:
    return artifact.python_tag


def library_version(artifact: PackageArtifact) -> str:
    return artifact.library_version


def accelerator_tag(artifact: PackageArtifact) -> str:
    return artifact.accelerator_tag


def parse_listing(document: str, package_name: str = Constants.TARGET_PACKAGE) -> Candidates:
    """Parse every listing line and keep artifacts of ``package_name``."""
    parsed = (parse_artifact_line(line) for line in document.split("\n"))
    return tuple(a for a in parsed if a is not None and a.package_name == package_name)


def filter_by_platform(candidates: Iterable[PackageArtifact], os_name: str, arch: str) -> Candidates:
    """Keep artifacts whose os_tag mentions both the OS and the architecture."""
    return tuple(a for a in candidates if os_name in a.os_tag and arch in a.os_tag)


def filter_by_dimension(
    candidates: Sequence[PackageArtifact],
    requested: Optional[str],
    extractor: Extractor,
) -> Candidates:
    """Narrow candidates on one dimension.

    With a requested value, keep artifacts whose tag contains it. Without one,
    pin the lexicographically greatest tag present and keep artifacts whose
    tag contains that.
    """
    if not candidates:
        return ()
    needle = requested if requested is not None else max(extractor(a) for a in candidates)
    return tuple(a for a in candidates if needle in extractor(a))


def sort_by_library_version(candidates: Iterable[PackageArtifact]) -> Candidates:
    """Order candidates by library version string (stable)."""
    return tuple(sorted(candidates, key=library_version))


def select_image_tag(entries: Iterable[TagEntry], semantic_version: str) -> Optional[str]:
    """Pick the greatest development image tag for ``semantic_version``."""
    names = [
        e.name for e in entries
        if e.name.startswith(semantic_version)
        and all(marker in e.name for marker in Constants.IMAGE_TAG_MARKERS)
    ]
    return max(names) if names else None


class VersionResolver:
    """Resolve a compatible artifact and its base image.

    Args:
        fetcher: Source of the index listing and registry tags.
        os_name: Canonical OS name to match; defaults to the running host.
        arch: Canonical architecture name to match; defaults to the running host.
    """

    def __init__(self, fetcher: IndexFetcher, os_name: Optional[str] = None, arch: Optional[str] = None):
        self.fetcher = fetcher
        host_os, host_arch = host_platform()
        self.os_name = os_name or host_os
        self.arch = arch or host_arch

    def _stage(self, label: str, candidates: Candidates) -> Candidates:
        if is_debug_enabled(logger):
            logger.debug(
                "Found %d versions %s",
                len(candidates),
                label,
                extra=extra_context(event="filter_stage", component="resolver", count=len(candidates)),
            )
        return candidates

    def filter_candidates(self, candidates: Candidates, constraints: ResolutionConstraints) -> Candidates:
        """Run the platform and per-dimension filters, then sort."""
        candidates = self._stage(
            "after filtering by OS and architecture",
            filter_by_platform(candidates, self.os_name, self.arch),
        )
        candidates = self._stage(
            "after filtering by Python version",
            filter_by_dimension(candidates, constraints.python, python_tag),
        )
        candidates = self._stage(
            "after filtering by Torch version",
            filter_by_dimension(candidates, constraints.library, library_version),
        )
        candidates = self._stage(
            "after filtering by CUDA version",
            filter_by_dimension(candidates, constraints.accelerator, accelerator_tag),
        )
        return sort_by_library_version(candidates)

    def resolve(self, constraints: Optional[ResolutionConstraints] = None) -> ResolvedVersion:
        """Resolve the single best artifact for ``constraints``.

        Raises:
            FetchError: If the package index cannot be fetched.
            NoCandidatesError: If no artifact survives the filter chain.
        """
        constraints = constraints or ResolutionConstraints()
        logger.info("Resolving versions with %s", constraints.describe())

        document = self.fetcher.fetch_index_document()
        candidates = self._stage("in the index", parse_listing(document))
        candidates = self.filter_candidates(candidates, constraints)

        if not candidates:
            raise NoCandidatesError("No versions found with the specified constraints", constraints)
        return candidates[-1]

    def resolve_base_image(self, version: ResolvedVersion) -> BaseImageTag:
        """Return the base image reference for ``version``.

        CPU builds use a fixed image without touching the registry.

        Raises:
            FetchError: If the tag registry cannot be queried.
            NoImageTagError: If no development image matches the accelerator version.
        """
        if version.is_cpu:
            return Constants.CPU_BASE_IMAGE

        semantic_version = version.accelerator_semantic_version()
        logger.info("Resolving image tag with cuda %s", semantic_version)
        entries = self.fetcher.fetch_tags(semantic_version)
        tag = select_image_tag(entries, semantic_version)
        if is_debug_enabled(logger):
            logger.debug(
                "Selected tag %s out of %d",
                tag,
                len(entries),
                extra=extra_context(event="tag_select", component="resolver"),
            )
        if tag is None:
            raise NoImageTagError(
                f"No CUDA image found for version {semantic_version}",
                semantic_version,
            )
        return f"{Constants.ACCELERATOR_IMAGE_REPOSITORY}:{tag}"
