"""
Step executor for multi-step commands.

A Workflow runs named steps strictly in order and records each one as
completed, failed or not_attempted. Nothing is rolled back: when a later
step fails the workflow turns the error into a PartialWorkflowFailure that
carries the step report, so callers can tell "nothing happened" apart from
"the first step happened, the second did not".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from ..db import StoreError
from ..logging_config import get_logger, log_action
from .errors import CommandError, PartialWorkflowFailure

logger = get_logger(__name__)


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


@dataclass
class StepRecord:
    name: str
    status: StepStatus = StepStatus.NOT_ATTEMPTED
    entity_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"step": self.name, "status": self.status.value}
        if self.entity_id:
            data["entityId"] = self.entity_id
        if self.error:
            data["error"] = self.error
        return data


class Workflow:
    def __init__(self, name: str, steps: Sequence[str]):
        self.name = name
        self.records: Dict[str, StepRecord] = {step: StepRecord(step) for step in steps}

    async def run(self, step: str, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        record = self.records[step]
        try:
            result = await func(*args, **kwargs)
        except (CommandError, StoreError) as e:
            record.status = StepStatus.FAILED
            record.error = str(e)
            log_action(logger, "warning", "workflow_step_failed", f"{self.name}: step {step} failed",
                       workflow=self.name, step=step, error=str(e))
            raise
        record.status = StepStatus.COMPLETED
        if isinstance(result, str):
            record.entity_id = result
        elif isinstance(result, dict) and isinstance(result.get("id"), str):
            record.entity_id = result["id"]
        return result

    @property
    def completed(self) -> List[str]:
        return [r.name for r in self.records.values() if r.status is StepStatus.COMPLETED]

    def report(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.records.values()]

    def partial_failure(
        self,
        error: Union[CommandError, StoreError],
        message: str,
        details: str,
        **extra: Any,
    ) -> Union[CommandError, StoreError]:
        """The error to surface once a step has failed."""
        if not self.completed:
            return error
        return PartialWorkflowFailure(
            message,
            details=details,
            suggestion=getattr(error, "suggestion", None),
            completedSteps=self.completed,
            steps=self.report(),
            **extra,
        )
