"""
Data models for declarative browser pipelines.

A pipeline is an ordered list of steps. Steps are immutable once parsed;
results are appended one per attempted step.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from portal_worker.core.exceptions import InvalidPipelineError


class PipelineAction(str, Enum):
    """Actions a pipeline step can perform."""

    OPEN_URL = "open-url"
    CLICK = "click"
    FILL = "fill"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class PipelineStep:
    """
    One declarative step as received from the caller.

    The action name is kept verbatim so that unknown actions can still be
    reported by name in the step results.
    """

    action: str
    payload: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, raw: Any) -> "PipelineStep":
        """
        Build a step from a decoded JSON object.

        Malformed entries are not rejected here; they produce a step whose
        action the interpreter does not support.
        """
        if not isinstance(raw, Mapping):
            return cls(action="")

        action = raw.get("action")
        payload = raw.get("payload")

        return cls(
            action="" if action is None else str(action),
            payload=MappingProxyType(
                dict(payload) if isinstance(payload, Mapping) else {}),
        )

    @property
    def kind(self) -> PipelineAction | None:
        """The recognised action, or None when unsupported."""
        try:
            return PipelineAction(self.action)
        except ValueError:
            return None


@dataclass
class StepResult:
    """
    Outcome of one attempted step.

    Successful steps may carry action-specific data (e.g. the base64
    screenshot); failed steps carry the error message.
    """

    action: str
    ok: bool
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def succeeded(cls, action: str, data: dict[str, Any] | None = None) -> "StepResult":
        return cls(action=action, ok=True, data=data or {})

    @classmethod
    def failed(cls, action: str, error: str) -> "StepResult":
        return cls(action=action, ok=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format: {action, ok, ...data} or {action, ok, error}."""
        result: dict[str, Any] = {"action": self.action, "ok": self.ok}
        if self.ok:
            result.update(self.data)
        else:
            result["error"] = self.error
        return result


@dataclass
class PipelineRun:
    """Results of one pipeline execution."""

    run_id: str
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if every attempted step succeeded (vacuously true when empty)."""
        return all(step.ok for step in self.steps)

    @property
    def failed_step(self) -> StepResult | None:
        """The step that stopped the run, if any."""
        for step in self.steps:
            if not step.ok:
                return step
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "runId": self.run_id,
            "success": self.ok,
            "steps": [step.to_dict() for step in self.steps],
        }


def parse_pipeline(raw: Any) -> list[PipelineStep]:
    """
    Parse a decoded JSON pipeline.

    Args:
        raw: The value of the request's "pipeline" field

    Returns:
        Steps in input order

    Raises:
        InvalidPipelineError: If the pipeline is missing or not a list
    """
    if not isinstance(raw, list):
        raise InvalidPipelineError("Invalid pipeline")

    return [PipelineStep.from_dict(item) for item in raw]
