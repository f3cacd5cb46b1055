"""FastAPI mock server exposing one flow at its serverTrigger path."""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from knotwork.config import Settings, get_settings
from knotwork.server.bridge import handle_request, trigger_config
from knotwork.workflow_runtime import Flow, WorkflowExecutor

logger = logging.getLogger(__name__)

ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def create_app(
    flow: Flow,
    executor: Optional[WorkflowExecutor] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create the mock server app for a flow.

    Every request on the trigger path, whatever its method, runs the flow
    once with a fresh Variable Store.

    Raises:
        ServerConfigError: If the flow has no serverTrigger node
    """
    settings = settings or get_settings()
    trigger = trigger_config(flow, settings)
    executor = executor or WorkflowExecutor()

    app = FastAPI(
        title="knotwork mock server",
        description="Serves a flow behind its serverTrigger node",
        version="0.1.0",
    )
    app.state.flow = flow
    app.state.trigger = trigger

    @app.api_route(trigger.path, methods=ROUTED_METHODS)
    async def trigger_endpoint(request: Request) -> Response:
        """Run the flow for one inbound request."""
        body = await request.body()

        try:
            reply = await run_in_threadpool(
                handle_request,
                flow,
                executor,
                request.method,
                body,
                dict(request.query_params),
            )
        except Exception as e:
            logger.exception(f"Flow execution failed: {e}")
            return PlainTextResponse(f"Flow execution failed: {e}", status_code=500)

        return Response(
            content=reply.body,
            status_code=reply.status_code,
            media_type=reply.media_type,
        )

    logger.info(f"Serving {trigger.method} {trigger.path} (all methods routed)")
    return app
