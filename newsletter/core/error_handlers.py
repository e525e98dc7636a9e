from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from .exceptions import NewsletterError, StoreUnavailable

logger = logging.getLogger(__name__)


async def newsletter_exception_handler(request: Request, exc: NewsletterError):
    """Handle domain errors raised by the article engine"""
    if isinstance(exc, StoreUnavailable):
        logger.error(f"Store unavailable: {exc.message} - Path: {request.url.path}")
    else:
        logger.info(f"{exc.code}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"}
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(NewsletterError, newsletter_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
