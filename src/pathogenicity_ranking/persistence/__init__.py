"""Provenance tracking for pipeline runs."""

from pathogenicity_ranking.persistence.provenance import ProvenanceTracker

__all__ = ["ProvenanceTracker"]
