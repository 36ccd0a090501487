from dotenv import load_dotenv

# Load environment variables BEFORE any imports that read settings
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from api.config import service_config
from api.routers import health, webhook
from deepagent.config import config as agent_config

logging.basicConfig(
    level=service_config.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Logs the active model and trigger labels at startup.
    """
    logger.info(
        "PR agents ready: model=%s, review label=%s, tests label=%s",
        agent_config.model_id,
        service_config.review_label,
        service_config.test_generation_label,
    )
    yield


# Create FastAPI application
app = FastAPI(
    title="PR Agents Webhook",
    description="""
    GitHub webhook service that runs AI agents on pull requests.

    ## Agents

    * **Review** - posts an AI code review when a PR is opened or labeled `agent-review-pr`
    * **Test generation** - commits generated tests to the PR branch when labeled `agent-generate-tests`
    """,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Include routers
app.include_router(
    webhook.router,
    prefix="/api",
    tags=["Webhook"]
)

app.include_router(
    health.router,
    tags=["Health"]
)


def run_server():
    """
    Run the API server.

    This function is used as an entry point for the CLI command.
    """
    uvicorn.run(
        "api.app:app",
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    run_server()
