"""Shared helpers for API routers."""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from command_center.api.models import ErrorResponse
from command_center.infra.error_handler import CommandCenterError, MissingCredential
from command_center.services.service_factory import ServiceFactory

logger = logging.getLogger("command_center.api")


def get_service_factory(request: Request) -> ServiceFactory:
    """Dependency: the factory created in the application lifespan."""
    return request.app.state.service_factory


def error_response(
    error: CommandCenterError,
    agent_id: Optional[str] = None,
    lead_id: Optional[str] = None,
) -> JSONResponse:
    """Translate a CommandCenterError into the error envelope."""
    if isinstance(error, MissingCredential):
        # Deployment defect, not a caller error
        logger.error("Tenant misconfigured", extra={**error.context(), "error": error.message})
    elif error.status_code >= 500:
        logger.error("Request failed", extra={**error.context(), "error": error.message})
    else:
        logger.info("Request rejected", extra={**error.context(), "error": error.message})

    body = ErrorResponse(
        error=error.message,
        category=error.category.value,
        agent_id=error.agent_id or agent_id,
        lead_id=error.lead_id or lead_id,
        sub_query=error.sub_query,
    )
    return JSONResponse(
        status_code=error.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
