"""HTTP entry point for triggering automations."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import ServflowConfig
from .contracts import ExecutionRequest
from .errors import AutomationNotFound
from .execute import AutomationExecutor

logger = logging.getLogger(__name__)

EXECUTE_PATH = "/automation-executor"


def create_app(
    executor: Optional[AutomationExecutor] = None,
    config: Optional[ServflowConfig] = None,
) -> FastAPI:
    """Application factory.

    Tests pass a ready executor wired to in-memory storage and providers;
    otherwise one is built from configuration.
    """
    app = FastAPI(title="servflow", version="0.1.0")
    app.state.executor = executor or AutomationExecutor(config=config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(RequestValidationError)
    async def _malformed_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"Rejected malformed execution request: {exc.errors()}")
        return JSONResponse(
            status_code=500, content={"error": f"Malformed request: {exc.errors()}"}
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(EXECUTE_PATH)
    async def execute_automation(payload: ExecutionRequest):
        try:
            result = await app.state.executor.execute_request(payload)
        except AutomationNotFound as e:
            return PlainTextResponse(str(e), status_code=404)
        except Exception as e:
            logger.exception(
                f"Failed to execute automation {payload.automation_id}"
            )
            return JSONResponse(
                status_code=500,
                content={"error": str(e) or "Failed to execute automation"},
            )
        return JSONResponse(content=result.to_response())

    return app
