# storefront/api/routers/webhooks.py
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import get_settings, get_webhook_handler
from storefront.services.webhook_service import PaymentWebhookHandler
from storefront.utils.settings import Settings

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    handler: PaymentWebhookHandler = Depends(get_webhook_handler),
):
    # surowe bajty, podpis liczony jest po dokladnej tresci requestu
    payload = await request.body()
    signature = request.headers.get(settings.stripe.signature_header)

    return await run_in_threadpool(handler.handle, payload, signature)
