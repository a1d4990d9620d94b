from .loader import load_config, load_config_with_overrides
from .schema import (
    AnnotatorConfig,
    MissingValue,
    PipelineConfig,
    ScoringSchema,
    VisualizationConfig,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "ScoringSchema",
    "AnnotatorConfig",
    "VisualizationConfig",
    "MissingValue",
]
