from functools import lru_cache

from tinydb import TinyDB

from chatledger.charts.service import ChartService
from chatledger.config import get_settings
from chatledger.db.repository import ExpenseRepository, UserRepository, open_database
from chatledger.engine.executor import OperationExecutor
from chatledger.formatters.base import Formatter
from chatledger.formatters.registry import build_formatters
from chatledger.llm.client import CompletionClient
from chatledger.llm.dispatcher import Dispatcher
from chatledger.models.schemas import Platform
from chatledger.whatsapp.client import WhatsAppClient
from chatledger.whatsapp.service import WhatsAppService

settings = get_settings()


@lru_cache
def get_database() -> TinyDB:
    return open_database(settings.db_path)


@lru_cache
def get_repository() -> ExpenseRepository:
    return ExpenseRepository(get_database())


@lru_cache
def get_users() -> UserRepository:
    return UserRepository(get_database())


@lru_cache
def get_formatters() -> dict[Platform, Formatter]:
    return build_formatters(settings.whatsapp_template_language)


@lru_cache
def get_dispatcher() -> Dispatcher:
    executor = OperationExecutor(
        get_repository(),
        ChartService(settings.chart_base_url),
        first_weekday=settings.first_weekday,
        latest_default_limit=settings.latest_default_limit,
    )
    llm = CompletionClient(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
    )
    return Dispatcher(
        llm,
        executor,
        approved_templates={Platform.WHATSAPP: settings.whatsapp_approved_templates},
    )


@lru_cache
def get_whatsapp_service() -> WhatsAppService:
    client = WhatsAppClient(
        settings.whatsapp_access_token,
        base_url=settings.whatsapp_base_api_url,
        api_version=settings.whatsapp_api_version,
    )
    return WhatsAppService(
        client,
        get_users(),
        get_dispatcher(),
        verify_token=settings.whatsapp_verify_token,
        formatters=get_formatters(),
    )
