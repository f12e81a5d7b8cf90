from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from loguru import logger

from chatledger.db.repository import ExpenseRepository
from chatledger.deps import get_dispatcher, get_formatters, get_repository, get_whatsapp_service
from chatledger.formatters.registry import format_for_platform
from chatledger.llm.dispatcher import Dispatcher
from chatledger.models.schemas import ExpenseOut, MessageRequest, MessageResponse, TotalOut
from chatledger.models.whatsapp import WebhookPayload
from chatledger.whatsapp.service import WhatsAppService, extract_text_message

router = APIRouter()


@router.get("/whatsapp/webhook", response_class=PlainTextResponse)
def verify_webhook(
    mode: str | None = Query(None, alias="hub.mode"),
    token: str | None = Query(None, alias="hub.verify_token"),
    challenge: str | None = Query(None, alias="hub.challenge"),
    service: WhatsAppService = Depends(get_whatsapp_service),
):
    result = service.verify_webhook(mode, token, challenge)
    if result is None:
        logger.warning("WhatsApp webhook verification failed")
        raise HTTPException(status_code=403, detail="Forbidden")
    return result


@router.post("/whatsapp/webhook")
async def receive_webhook(
    payload: WebhookPayload,
    background_tasks: BackgroundTasks,
    service: WhatsAppService = Depends(get_whatsapp_service),
):
    inbound = extract_text_message(payload)
    if inbound is None:
        return {"status": "ignored"}
    background_tasks.add_task(service.handle, inbound)
    return {"status": "accepted"}


@router.post("/messages", response_model=MessageResponse)
async def process_message(
    request: MessageRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    formatters=Depends(get_formatters),
):
    envelope = await dispatcher.process_message(request.message, request.owner_id, request.platform)
    recipient = request.recipient or str(request.owner_id)
    outbound = format_for_platform(envelope, request.platform, recipient, formatters)
    return MessageResponse(envelope=envelope, outbound=outbound)


@router.get("/owners/{owner_id}/expenses", response_model=list[ExpenseOut])
def list_expenses(
    owner_id: int,
    limit: int | None = Query(None, ge=1),
    repo: ExpenseRepository = Depends(get_repository),
):
    return [ExpenseOut(**record.model_dump(exclude={"owner_id"})) for record in repo.find_by_owner(owner_id, limit)]


@router.get("/owners/{owner_id}/expenses/total", response_model=TotalOut)
def total_expenses(owner_id: int, repo: ExpenseRepository = Depends(get_repository)):
    return TotalOut(owner_id=owner_id, total=repo.sum_by_owner(owner_id))


@router.delete("/owners/{owner_id}/expenses/{expense_id}")
def delete_expense(owner_id: int, expense_id: int, repo: ExpenseRepository = Depends(get_repository)):
    if not repo.delete(expense_id, owner_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    logger.info("Deleted expense #{} for owner #{}", expense_id, owner_id)
    return {"detail": "Expense deleted"}
