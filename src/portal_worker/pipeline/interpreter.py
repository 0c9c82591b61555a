"""
Sequential interpreter for declarative browser pipelines.

Steps run one at a time against the session's page. The first failing
step is recorded and ends the run; later steps are never attempted.
"""

import base64
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from playwright.async_api import Page

from portal_worker.browser import actions
from portal_worker.browser.session import Session
from portal_worker.config.settings import BrowserSettings
from portal_worker.core.exceptions import InvalidStepError, UnsupportedActionError
from portal_worker.pipeline.models import (
    PipelineAction,
    PipelineRun,
    PipelineStep,
    StepResult,
)
from portal_worker.utils.logging import get_logger_with_context

StepHandler = Callable[[Page, Mapping[str, Any]], Awaitable[dict[str, Any]]]


def _require(payload: Mapping[str, Any], key: str, action: PipelineAction) -> str:
    """Fetch a required payload field as text."""
    value = payload.get(key)
    if value is None:
        raise InvalidStepError(
            f"Missing payload field '{key}'",
            action=action.value,
            field=key,
        )
    return str(value)


class ActionInterpreter:
    """
    Executes pipeline steps against a browser session.

    Dispatch goes through a table keyed by PipelineAction; every member of
    the enum must have a handler, which is checked at construction.

    Example:
        >>> interpreter = ActionInterpreter(settings.browser)
        >>> async with sessions.session() as session:
        ...     run = await interpreter.execute(session, steps)
        >>> run.ok, len(run.steps)
    """

    def __init__(self, settings: BrowserSettings | None = None) -> None:
        self.settings = settings or BrowserSettings()
        self._handlers: dict[PipelineAction, StepHandler] = {
            PipelineAction.OPEN_URL: self._open_url,
            PipelineAction.CLICK: self._click,
            PipelineAction.FILL: self._fill,
            PipelineAction.SCREENSHOT: self._screenshot,
        }

        missing = set(PipelineAction) - set(self._handlers)
        if missing:
            raise TypeError(
                f"No handler for actions: {sorted(a.value for a in missing)}")

    async def execute(
        self,
        session: Session,
        steps: Sequence[PipelineStep],
    ) -> PipelineRun:
        """
        Run steps in order, stopping at the first failure.

        Never raises for step failures: each error is captured into the
        failing StepResult and the (possibly truncated) results returned.

        Args:
            session: Open session whose page the steps drive
            steps: Steps in execution order

        Returns:
            PipelineRun with a fresh run id and one result per attempted step
        """
        run = PipelineRun(run_id=str(uuid.uuid4()))
        logger = get_logger_with_context(__name__, run_id=run.run_id)
        logger.info(f"Pipeline started with {len(steps)} step(s)")

        for index, step in enumerate(steps, start=1):
            try:
                data = await self._dispatch(session.page, step)
            except Exception as e:
                run.steps.append(StepResult.failed(step.action, str(e)))
                logger.warning(
                    f"Step {index} ({step.action or '<none>'}) failed, "
                    f"skipping {len(steps) - index} remaining: {e}"
                )
                break

            run.steps.append(StepResult.succeeded(step.action, data))
            logger.debug(f"Step {index} ({step.action}) ok")

        logger.info(
            f"Pipeline finished: {len(run.steps)}/{len(steps)} attempted, "
            f"success={run.ok}"
        )
        return run

    async def _dispatch(self, page: Page, step: PipelineStep) -> dict[str, Any]:
        kind = step.kind
        if kind is None:
            raise UnsupportedActionError(step.action)
        return await self._handlers[kind](page, step.payload)

    async def _open_url(self, page: Page, payload: Mapping[str, Any]) -> dict[str, Any]:
        url = _require(payload, "url", PipelineAction.OPEN_URL)
        await actions.navigate(
            page,
            url,
            wait_until="networkidle",
            timeout_ms=self.settings.navigation_timeout_ms,
        )
        return {}

    async def _click(self, page: Page, payload: Mapping[str, Any]) -> dict[str, Any]:
        selector = _require(payload, "selector", PipelineAction.CLICK)
        await actions.click(page, selector)
        return {}

    async def _fill(self, page: Page, payload: Mapping[str, Any]) -> dict[str, Any]:
        selector = _require(payload, "selector", PipelineAction.FILL)
        value = _require(payload, "value", PipelineAction.FILL)
        await actions.fill(page, selector, value)
        return {}

    async def _screenshot(self, page: Page, payload: Mapping[str, Any]) -> dict[str, Any]:
        image = await actions.capture_screenshot(page, full_page=True)
        return {"screenshot": base64.b64encode(image).decode("ascii")}
