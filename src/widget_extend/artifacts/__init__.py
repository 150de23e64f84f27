"""Storage for the files produced by a pipeline run."""

from __future__ import annotations

from .artifact_store import ArtifactStore, DestinationLayout, compute_digest

__all__ = ["ArtifactStore", "DestinationLayout", "compute_digest"]
