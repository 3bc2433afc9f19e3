"""Stage orchestration: blueprint -> test -> solution.

The orchestrator gates each stage on the output of the previous one, runs
one external call per stage, keeps a progress estimate ticking while the
call is pending, and records failures on the session instead of raising.
"""

import random
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TypeVar

from examgen_core.config import Settings
from examgen_core.errors import (
    ExamGenError,
    GenerationFailure,
    MissingPrerequisiteError,
    StageInProgressError,
)
from examgen_core.generation.progress import (
    DEFAULT_CAP,
    DEFAULT_MAX_INCREMENT,
    DEFAULT_TICK_INTERVAL,
    ProgressTicker,
)
from examgen_core.generation.stages import GenerationBackend
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import GenerationInput, Stage
from examgen_core.session import GenerationSession
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT", Blueprint, ExamPaper, AnswerKey)
ProgressCallback = Callable[[Stage, float], None]

COMPLETE = 100.0


class GenerationOrchestrator:
    """Run generation stages against a session.

    Every ``start_*`` method returns the stage result, or None when a
    precondition failed or the backend raised; the reason is then in
    ``session.last_error``.
    """

    def __init__(
        self,
        session: GenerationSession,
        backend: GenerationBackend,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        max_increment: float = DEFAULT_MAX_INCREMENT,
        progress_cap: float = DEFAULT_CAP,
        on_progress: ProgressCallback | None = None,
        rng: Callable[[], float] = random.random,
    ):
        self.session = session
        self.backend = backend
        self.tick_interval = tick_interval
        self.max_increment = max_increment
        self.progress_cap = progress_cap
        self.on_progress = on_progress
        self._rng = rng
        self._tickers: dict[Stage, ProgressTicker] = {}

    @classmethod
    def from_settings(
        cls,
        session: GenerationSession,
        backend: GenerationBackend,
        settings: Settings,
        on_progress: ProgressCallback | None = None,
    ) -> "GenerationOrchestrator":
        return cls(
            session,
            backend,
            tick_interval=settings.progress_tick_interval,
            max_increment=settings.progress_max_increment,
            progress_cap=settings.progress_cap,
            on_progress=on_progress,
        )

    async def start_blueprint(
        self, generation_input: GenerationInput | None = None
    ) -> Blueprint | None:
        """Generate the blueprint, discarding any blueprint, test and solution.

        Args:
            generation_input: Input to use (defaults to the session's)

        Returns:
            The blueprint, or None on failure
        """
        stage = Stage.BLUEPRINT
        generation_input = generation_input or self.session.generation_input
        try:
            self._ensure_idle(stage)
            generation_input.cognitive_ratios.ensure_valid()
        except ExamGenError as e:
            return self._reject(stage, e)

        self.session.generation_input = generation_input
        return await self._run_stage(
            stage, lambda: self.backend.generate_blueprint(generation_input)
        )

    async def start_test(
        self,
        generation_input: GenerationInput | None = None,
        blueprint: Blueprint | None = None,
    ) -> ExamPaper | None:
        """Generate the test from a blueprint, discarding any test and solution.

        Args:
            generation_input: Input to use (defaults to the session's)
            blueprint: Blueprint to implement (defaults to the session's)

        Returns:
            The test, or None on failure
        """
        stage = Stage.TEST
        generation_input = generation_input or self.session.generation_input
        blueprint = blueprint or self.session.blueprint
        try:
            self._ensure_idle(stage)
            if blueprint is None:
                raise MissingPrerequisiteError(
                    "Generate the blueprint before generating the test."
                )
        except ExamGenError as e:
            return self._reject(stage, e)

        return await self._run_stage(
            stage, lambda: self.backend.generate_test(generation_input, blueprint)
        )

    async def start_solution(
        self,
        test: ExamPaper | None = None,
        generation_input: GenerationInput | None = None,
    ) -> AnswerKey | None:
        """Generate the answer key for a test, discarding any previous one.

        Args:
            test: Test to solve (defaults to the session's)
            generation_input: Input to use (defaults to the session's)

        Returns:
            The answer key, or None on failure
        """
        stage = Stage.SOLUTION
        test = test or self.session.exam
        generation_input = generation_input or self.session.generation_input
        try:
            self._ensure_idle(stage)
            if test is None:
                raise MissingPrerequisiteError(
                    "Generate the test before generating the answer key."
                )
        except ExamGenError as e:
            return self._reject(stage, e)

        return await self._run_stage(
            stage, lambda: self.backend.generate_solution(test, generation_input)
        )

    async def close(self) -> None:
        """Stop every progress ticker still running."""
        for stage, ticker in list(self._tickers.items()):
            await ticker.stop()
            self._tickers.pop(stage, None)

    def _ensure_idle(self, stage: Stage) -> None:
        busy = self.session.busy_stage
        if busy is not None:
            raise StageInProgressError(
                f"Cannot start {stage.value} generation while {busy.value} "
                "generation is still running."
            )

    def _reject(self, stage: Stage, error: ExamGenError) -> None:
        logger.warning(f"Not starting {stage.value}: {error}")
        self.session.last_error = error
        return None

    def _report(self, stage: Stage, value: float) -> None:
        self.session.progress[stage] = value
        if self.on_progress is not None:
            self.on_progress(stage, value)

    async def _run_stage(
        self, stage: Stage, call: Callable[[], Awaitable[ResultT]]
    ) -> ResultT | None:
        self.session.begin_stage(stage)
        ticker = ProgressTicker(
            partial(self._report, stage),
            interval=self.tick_interval,
            max_increment=self.max_increment,
            cap=self.progress_cap,
            rng=self._rng,
        )
        self._tickers[stage] = ticker
        ticker.start()
        logger.info(f"Started {stage.value} generation")

        failure: GenerationFailure | None = None
        result: ResultT | None = None
        try:
            result = await call()
        except Exception as e:
            failure = GenerationFailure.from_exception(stage.value, e)
        finally:
            await ticker.stop()
            self._tickers.pop(stage, None)
            self.session.end_stage(stage)

        if failure is not None:
            self.session.fail_stage(stage, failure)
            return None

        self.session.complete_stage(stage, result)
        self._report(stage, COMPLETE)
        logger.info(f"Completed {stage.value} generation")
        return result
