"""Quality validation pipeline: a client of the engine, run from the CLI."""

from domaingen.quality.pipeline import STEPS, QualityPipeline, QualityReport, StepResult

__all__ = ["STEPS", "QualityPipeline", "QualityReport", "StepResult"]
