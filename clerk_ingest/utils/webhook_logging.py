import time
import logging
from fastapi import Request

logger = logging.getLogger("uvicorn.error")

WEBHOOK_PATH_PREFIX = "/api/webhooks"


async def log_webhook_requests(request: Request, call_next):
    """HTTP middleware: one line in, one line out for webhook deliveries. Bodies are never logged."""
    if not request.url.path.startswith(WEBHOOK_PATH_PREFIX):
        return await call_next(request)

    started = time.perf_counter()
    application_id = request.headers.get("application_id")
    svix_id = request.headers.get("svix-id")
    logger.info(
        f"📥 Webhook received: {request.method} {request.url.path} application_id={application_id} svix_id={svix_id}"
    )

    response = await call_next(request)

    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"📤 Webhook processed: {response.status_code} in {duration_ms:.1f}ms svix_id={svix_id}"
    )
    return response
