"""Provenance sidecars for scoring and annotation runs.

A sidecar ties a ranked table back to the settings and inputs that produced
it: package version, config hash, predictor mapping, anchor list, ANNOVAR
build/protocol, checksums of the input tables and an ordered list of steps.
"""

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def file_sha256(path: Path, chunk_size: int = 1 << 20) -> str:
    """SHA-256 hex digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ProvenanceTracker:
    """Collects run metadata and writes it next to an output file.

    Usage:
        tracker = ProvenanceTracker.from_config(config)
        tracker.record_input(input_file)
        tracker.record_step("score_variants", {"scored_variants": 42})
        tracker.save_sidecar(csv_path)   # -> <csv stem>.run.json
    """

    def __init__(self, pipeline_version: str, config: "PipelineConfig"):
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.predictors = dict(config.scoring.predictors)
        self.anchors = list(config.scoring.anchors)

        annotator = config.annotator
        self.annotator_settings = None if annotator is None else {
            "genome_build": annotator.genome_build,
            "protocol": list(annotator.protocol),
            "operation": list(annotator.operation),
        }

        self.inputs: list[dict] = []
        self.processing_steps: list[dict] = []
        self.created_at = _utc_now()

    def record_input(self, path: Path | str) -> None:
        """Remember an input file with its size and checksum."""
        path = Path(path)
        self.inputs.append({
            "path": str(path),
            "size_bytes": path.stat().st_size,
            "sha256": file_sha256(path),
        })

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """Append a named step; details are stored only when non-empty."""
        step = {"step_name": step_name, "timestamp": _utc_now()}
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def get_steps(self) -> list[dict]:
        return self.processing_steps

    def create_metadata(self) -> dict:
        return {
            "pipeline_version": self.pipeline_version,
            "config_hash": self.config_hash,
            "predictors": self.predictors,
            "anchors": self.anchors,
            "annotator": self.annotator_settings,
            "inputs": self.inputs,
            "created_at": self.created_at,
            "processing_steps": self.processing_steps,
        }

    def save_sidecar(self, output_path: Path | str) -> Path:
        """Write metadata to ``<output stem>.run.json`` and return that path."""
        sidecar_path = Path(output_path).with_suffix(".run.json")
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)
        sidecar_path.write_text(json.dumps(self.create_metadata(), indent=2, default=str))
        return sidecar_path

    @staticmethod
    def load_sidecar(sidecar_path: Path | str) -> dict:
        return json.loads(Path(sidecar_path).read_text())

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        version: Optional[str] = None,
    ) -> "ProvenanceTracker":
        """Build a tracker, defaulting to the installed package version."""
        if version is None:
            from pathogenicity_ranking import __version__
            version = __version__
        return cls(version, config)
