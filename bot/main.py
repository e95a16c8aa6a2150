import asyncio
import logging

import structlog
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.base import BaseStorage
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from redis.asyncio import Redis

import config
from bot.handlers_onboarding import OnboardingConversation, create_onboarding_router
from bot.submission_client import HttpSubmissionClient
from connectors.document_store import InMemoryDocumentStore
from onboarding.draft import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from onboarding.submission import SubmissionCoordinator, Submitter
from onboarding_service.logging import configure_logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = structlog.get_logger("onboarding_bot")


def build_submitter() -> Submitter:
    if config.SUBMIT_API_URL:
        return HttpSubmissionClient(base_url=config.SUBMIT_API_URL, timeout=config.SUBMIT_TIMEOUT_SECONDS)
    logger.warning("submitter_in_process", reason="SUBMIT_API_URL is not set")
    return SubmissionCoordinator(InMemoryDocumentStore())


async def main() -> None:
    configure_logging(config.LOG_LEVEL)
    if not config.TELEGRAM_TOKEN:
        raise ValueError("TELEGRAM_TOKEN is not set. Fill .env file first.")

    storage: BaseStorage = MemoryStorage()
    kv: KeyValueStore = InMemoryKeyValueStore()
    redis_client = None
    if config.USE_REDIS:
        redis_client = Redis.from_url(config.REDIS_URL)
        storage = RedisStorage(redis=redis_client)
        kv = RedisKeyValueStore(redis_client, ttl_seconds=config.DRAFT_TTL_SECONDS)

    submitter = build_submitter()
    conversation = OnboardingConversation(
        kv=kv,
        submitter=submitter,
        loading_delay_sec=config.LOADING_DELAY_SECONDS,
    )

    bot = Bot(token=config.TELEGRAM_TOKEN)
    dp = Dispatcher(storage=storage)
    dp.include_router(create_onboarding_router(conversation))

    logger.info("bot_starting", use_redis=config.USE_REDIS, submit_api=bool(config.SUBMIT_API_URL))
    try:
        await dp.start_polling(bot)
    finally:
        if isinstance(submitter, HttpSubmissionClient):
            await submitter.aclose()
        if redis_client is not None:
            await redis_client.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
