from fastapi import APIRouter, Request, Depends, Response, status
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect
from datetime import datetime, timezone
import logging

from clerk_ingest.services.clerk_webhook import ClerkWebhookService
from clerk_ingest.utils.dependencies import get_clerk_webhook_service
from clerk_ingest.utils.errors import RequestCancelledError

router = APIRouter(prefix="/api/webhooks", tags=["Clerk Webhooks"])
logger = logging.getLogger("uvicorn.error")

# nginx's "Client Closed Request"
CLIENT_CLOSED_REQUEST = 499


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post(
    "/clerk",
    summary="Process a Clerk webhook",
    description="Receives Clerk user events delivered through Svix and applies them to the tenant's users collection.",
    responses={
        400: {"description": "Rejected or failed delivery"},
        499: {"description": "Client closed the request"},
        500: {"description": "Unexpected error", "content": {"application/problem+json": {}}},
    },
)
async def handle_clerk_webhook(
    request: Request,
    webhook_service: ClerkWebhookService = Depends(get_clerk_webhook_service),
):
    try:
        # The whole raw body is the signed message, so read it in full first
        body = await request.body()
        success = await webhook_service.process_webhook(
            body,
            request.headers,
            is_disconnected=request.is_disconnected,
        )
    except (ClientDisconnect, RequestCancelledError) as e:
        logger.warning(f"⚠️ Webhook processing cancelled: {repr(e)}")
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except Exception as e:
        logger.error(f"❌ Unexpected error processing Clerk webhook: {repr(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            media_type="application/problem+json",
            content={
                "type": "about:blank",
                "title": "Internal Server Error",
                "status": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "detail": "Error processing Clerk webhook",
                "instance": f"{request.method} {request.url.path}",
            },
        )

    if success:
        return {"message": "Webhook processed successfully", "timestamp": _now()}

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Failed to process webhook", "timestamp": _now()},
    )
