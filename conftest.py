import itertools
import os
from pathlib import Path

import pytest

# Importing legacy_agent.app builds a module-level app from the environment;
# keep it off the real data dir and away from any configured model.
TEST_DATA_DIR = Path("data-tests")
os.environ["DATA_DIR"] = str(TEST_DATA_DIR.resolve())
os.environ["LLM_PROVIDER_URL"] = ""

from legacy_agent.agent import ToolExecutor  # noqa: E402
from legacy_agent.demo import DEMO_USER_ID, create_demo_data  # noqa: E402
from legacy_agent.llm import ModelRequest, ModelResponse, Usage  # noqa: E402
from legacy_agent.models import Legacy, TextBlock, ToolUseBlock  # noqa: E402
from legacy_agent.storage import Reference, Storage, load_reference  # noqa: E402

PRESETS_DIR = Path(__file__).parent / "presets"


class StubLLM:
    """Deterministic LLM stand-in for tests.

    Returns the queued responses in call order and records every request.
    Raises if called more times than responses were provided, unless
    repeat_last is set, in which case the last response is returned forever.
    """

    model = "stub-model"
    _ids = itertools.count(1)

    def __init__(self, responses: list[ModelResponse], repeat_last: bool = False) -> None:
        self._queue = list(responses)
        self._repeat_last = repeat_last
        self._last: ModelResponse | None = None
        self.requests: list[ModelRequest] = []

    async def __call__(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        if self._queue:
            self._last = self._queue.pop(0)
            return self._last
        if self._repeat_last and self._last is not None:
            return self._last
        raise AssertionError(
            f"StubLLM: unexpected call #{len(self.requests)} (no responses queued)"
        )

    def assert_exhausted(self) -> None:
        """Assert every queued response was consumed — catches missing LLM calls."""
        if self._queue:
            raise AssertionError(f"StubLLM: {len(self._queue)} unused responses remain")

    # -- response builders -------------------------------------------------

    @staticmethod
    def text(*texts: str, input_tokens: int = 10, output_tokens: int = 5) -> ModelResponse:
        return ModelResponse(
            stop_reason="end_turn",
            content=[TextBlock(text=t) for t in texts],
            usage=Usage(input_tokens=input_tokens, output_tokens=output_tokens),
            model=StubLLM.model,
        )

    @staticmethod
    def tools(*calls: tuple[str, dict], text: str | None = None,
              stop_reason: str = "tool_use") -> ModelResponse:
        content: list = [TextBlock(text=text)] if text else []
        for name, args in calls:
            content.append(ToolUseBlock(id=f"toolu_{next(StubLLM._ids)}", name=name, input=args))
        return ModelResponse(
            stop_reason=stop_reason,
            content=content,
            usage=Usage(input_tokens=10, output_tokens=5),
            model=StubLLM.model,
        )

    @staticmethod
    def empty() -> ModelResponse:
        return ModelResponse(stop_reason="end_turn", content=[], model=StubLLM.model)


@pytest.fixture
def stub_llm():
    """The StubLLM class, for building scripted responses."""
    return StubLLM


@pytest.fixture
def storage(tmp_path) -> Storage:
    return Storage(tmp_path / "data")


@pytest.fixture
def reference() -> Reference:
    return load_reference(PRESETS_DIR)


@pytest.fixture
def demo_legacy(storage) -> Legacy:
    """The seeded 'Lavender Legacy': Lavender, Marcus, Rose; generation 2 active."""
    return create_demo_data(storage)


@pytest.fixture
def user_id() -> str:
    return DEMO_USER_ID


@pytest.fixture
def executor(storage, reference, demo_legacy) -> ToolExecutor:
    return ToolExecutor(storage, reference, demo_legacy.legacy_id)
