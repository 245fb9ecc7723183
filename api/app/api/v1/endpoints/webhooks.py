"""
Endpoint receptor de webhooks de Notion.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from app.api.v1.dependencies.use_case_deps import get_webhook_dispatcher
from app.application.services.webhook_dispatcher import WebhookDispatcher


router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/notion", summary="Recibir eventos de Notion")
async def notion_webhook(
    request: Request,
    x_notion_signature: Optional[str] = Header(None),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)
) -> JSONResponse:
    """
    Recibe eventos de páginas de Notion y aplica el sync incremental.

    Responde 200 incluso ante errores internos (Notion reintentaría);
    solo una firma inválida devuelve 401.
    """
    raw_body = await request.body()
    result = await dispatcher.handle(raw_body, x_notion_signature)
    return JSONResponse(status_code=result.status_code, content=result.body)
