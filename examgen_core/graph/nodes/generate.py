"""Generation nodes: one node per orchestrator stage."""

from collections.abc import Awaitable, Callable
from typing import Any

from examgen_core.generation.orchestrator import GenerationOrchestrator
from examgen_core.schemas.generation import Stage

# State key receiving each stage's result, and the progress reached after it
_STAGE_OUTPUT = {
    Stage.BLUEPRINT: ("blueprint", 55),
    Stage.TEST: ("exam", 85),
    Stage.SOLUTION: ("solution", 100),
}


def create_stage_node(
    orchestrator: GenerationOrchestrator,
    stage: Stage,
) -> Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]:
    """Create a node that runs one generation stage.

    Args:
        orchestrator: Orchestrator owning the session
        stage: Stage to run

    Returns:
        Async node function
    """
    key, progress = _STAGE_OUTPUT[stage]

    async def stage_node(state: dict[str, Any]) -> dict[str, Any]:
        if stage is Stage.BLUEPRINT:
            result = await orchestrator.start_blueprint()
        elif stage is Stage.TEST:
            result = await orchestrator.start_test()
        else:
            result = await orchestrator.start_solution()

        if result is None:
            error = orchestrator.session.last_error
            message = str(error) if error else f"unknown error generating {stage.value}"
            return {
                **state,
                "errors": state.get("errors", []) + [message],
                "current_step": stage.value,
            }

        return {
            **state,
            key: result,
            "current_step": stage.value,
            "progress": progress,
        }

    stage_node.__name__ = f"{stage.value}_node"
    return stage_node
