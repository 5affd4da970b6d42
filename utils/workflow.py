"""
Multi-step workflows with best-effort compensation.

Admin actions such as "create product, then its variant, then upload its
images" are several independent Supabase calls. A Workflow runs them in
order, remembers what finished, and when a step raises it undoes the
finished steps in reverse order before raising WorkflowStepError.

Usage:
    workflow = Workflow("create_product")
    workflow.step("create_product", lambda r: svc.create(data),
                  compensate=lambda product: svc.hard_delete(product.id))
    workflow.step("create_variant", lambda r: svc.create_variant(
                  draft.for_product(r["create_product"].id)))
    results = workflow.run()
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional
import structlog

from exceptions import WorkflowStepError

logger = structlog.get_logger(__name__)

StepAction = Callable[[dict[str, Any]], Any]
StepCompensation = Callable[[Any], None]


@dataclass
class WorkflowStep:
    """One step: action receives earlier results, compensation receives its own result."""

    name: str
    action: StepAction
    compensate: Optional[StepCompensation] = None


@dataclass
class Workflow:
    """Ordered list of steps run by run()."""

    name: str
    steps: list[WorkflowStep] = field(default_factory=list)
    results: dict[str, Any] = field(default_factory=dict)

    def step(
        self,
        name: str,
        action: StepAction,
        compensate: Optional[StepCompensation] = None
    ) -> "Workflow":
        """Append a step. Names must be unique within the workflow."""
        if any(s.name == name for s in self.steps):
            raise ValueError(f"Duplicate workflow step: {name}")
        self.steps.append(WorkflowStep(name, action, compensate))
        return self

    def run(self) -> dict[str, Any]:
        """
        Run all steps in order.

        Returns:
            Step name -> step result

        Raises:
            WorkflowStepError: A step raised; finished steps were compensated
        """
        completed: list[WorkflowStep] = []

        logger.info("workflow_started", workflow=self.name, steps=len(self.steps))

        for step in self.steps:
            try:
                result = step.action(self.results)
            except Exception as e:
                logger.error(
                    "workflow_step_failed",
                    workflow=self.name,
                    step=step.name,
                    error=str(e),
                    error_type=type(e).__name__
                )
                compensated, failures = self._compensate(completed)
                raise WorkflowStepError(
                    workflow=self.name,
                    failed_step=step.name,
                    error=e,
                    completed_steps=[s.name for s in completed],
                    compensated_steps=compensated,
                    compensation_failures=failures
                ) from e

            self.results[step.name] = result
            completed.append(step)
            logger.debug("workflow_step_complete", workflow=self.name, step=step.name)

        logger.info("workflow_complete", workflow=self.name)
        return self.results

    def _compensate(self, completed: list[WorkflowStep]) -> tuple[list[str], list[str]]:
        """Undo finished steps newest first. Returns (compensated, failed)."""
        compensated: list[str] = []
        failures: list[str] = []

        for step in reversed(completed):
            if step.compensate is None:
                continue
            try:
                step.compensate(self.results[step.name])
                compensated.append(step.name)
            except Exception as e:
                logger.error(
                    "workflow_compensation_failed",
                    workflow=self.name,
                    step=step.name,
                    error=str(e)
                )
                failures.append(step.name)

        logger.warning(
            "workflow_compensated",
            workflow=self.name,
            compensated=compensated,
            failed=failures
        )
        return compensated, failures
