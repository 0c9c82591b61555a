"""
Pipeline module for the portal automation worker.

Parses declarative step lists and executes them sequentially against a
browser session with stop-on-first-failure semantics.
"""

from portal_worker.pipeline.models import (
    PipelineAction,
    PipelineStep,
    StepResult,
    PipelineRun,
    parse_pipeline,
)
from portal_worker.pipeline.interpreter import ActionInterpreter

__all__ = [
    "PipelineAction",
    "PipelineStep",
    "StepResult",
    "PipelineRun",
    "parse_pipeline",
    "ActionInterpreter",
]
