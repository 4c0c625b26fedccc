from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from legacy_agent.config import AgentConfig
from legacy_agent.llm import LLM
from legacy_agent.routes import router
from legacy_agent.service import ChatService

load_dotenv(Path(__file__).parent.parent / ".env")


def create_app(config: AgentConfig | None = None, llm: LLM | None = None) -> FastAPI:
    resolved = config or AgentConfig.from_env()

    app = FastAPI(title="Sims Legacy Agent")
    app.state.chat = ChatService.from_config(resolved, llm)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (configured from the environment)
app = create_app()
