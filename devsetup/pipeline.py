from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence, Tuple

from .context import SetupContext
from .errors import FatalError

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single provisioning step.

    Returns warnings; raises FatalError when it is unsafe to continue.
    """

    step_id: str
    after: Tuple[str, ...]
    requires_main_project: bool

    def run(self, ctx: SetupContext) -> List[str]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    skipped_steps: List[str]


def validate_order(steps: Sequence[Step]) -> None:
    """Every declared predecessor must appear earlier in the list."""

    seen: List[str] = []
    known = {s.step_id for s in steps}
    for step in steps:
        if step.step_id in seen:
            raise ValueError(f"Duplicate step id: {step.step_id}")
        for dep in getattr(step, "after", ()):
            if dep not in known:
                raise ValueError(f"Step {step.step_id} depends on unknown step {dep}")
            if dep not in seen:
                raise ValueError(f"Step {step.step_id} must run after {dep}")
        seen.append(step.step_id)


def run_pipeline(*, ctx: SetupContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps once, in order. The first FatalError stops the run."""

    validate_order(steps)

    ran: List[str] = []
    skipped: List[str] = []

    for step in steps:
        if getattr(step, "requires_main_project", False) and not ctx.include_main_project:
            logger.info("Skipping step %s (main project disabled)", step.step_id)
            skipped.append(step.step_id)
            continue

        logger.info("Running step %s", step.step_id)
        try:
            warnings = step.run(ctx)
        except FatalError as e:
            if e.step_id is None:
                e.step_id = step.step_id
            raise
        ctx.collector.extend(warnings or [])
        ran.append(step.step_id)

    return PipelineResult(ran_steps=ran, skipped_steps=skipped)
