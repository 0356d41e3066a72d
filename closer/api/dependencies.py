"""Dependency injection for API routes.

Provides FastAPI dependencies for stores, the control plane and the model
clients used by API endpoints. Dependencies are configured from settings
and can be overridden for testing.
"""

import os
from functools import lru_cache
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from closer.cache.store import CacheStore
from closer.cache.stores import InMemoryCacheStore, RedisCacheStore
from closer.classification import ClassifyLeadsWorkflow, OutcomeClassifier
from closer.config.loader import load_config
from closer.config.settings import Settings, set_toml_config
from closer.control import BotControl, ConversationLock, MessageDeduplicator
from closer.control import controller as control_module
from closer.conversation.store import ConversationStore, LeadStore
from closer.conversation.stores import (
    InMemoryConversationStore,
    InMemoryLeadStore,
    PostgresConversationStore,
    PostgresLeadStore,
)
from closer.db.pool import PostgresPool
from closer.observability.logging import get_logger
from closer.pipeline import LLMReplyGenerator, ReplyGenerator, TurnControlPlane
from closer.providers.llm import create_executor_from_step_config
from closer.ratelimit import (
    InMemorySlidingWindow,
    MessageRateLimiter,
    RedisSlidingWindow,
    SlidingWindowStore,
    set_rate_limiter,
)
from closer.state.bridge import StateBridge
from closer.state.store import DurableStateStore
from closer.state.stores import InMemoryDurableStateStore, PostgresDurableStateStore
from closer.summary import ConversationStateSummarizer

logger = get_logger(__name__)

# Connection pool and client instances - shared across stores
_postgres_pool: PostgresPool | None = None
_redis_client: redis.Redis | None = None
_redis_checked = False

# Store and service instances - created once and reused
_cache_store: CacheStore | None = None
_durable_store: DurableStateStore | None = None
_conversation_store: ConversationStore | None = None
_lead_store: LeadStore | None = None
_bot_control: BotControl | None = None
_rate_limiter: MessageRateLimiter | None = None
_turn_pipeline: TurnControlPlane | None = None
_classify_workflow: ClassifyLeadsWorkflow | None = None


@lru_cache
def get_settings() -> Settings:
    """Get application settings.

    Loads configuration from TOML files and environment variables.
    Cached to avoid reloading on every request.
    """
    try:
        toml_config = load_config()
    except FileNotFoundError:
        logger.warning("config_file_not_found", msg="Using default configuration")
        toml_config = {}
    set_toml_config(toml_config)

    return Settings()


SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_postgres_pool(settings: SettingsDep) -> PostgresPool | None:
    """Get the shared PostgreSQL pool, or None when Postgres is not configured.

    The pool opens on first use, so an outage surfaces as ConnectionError on
    each store call and clears once the database is reachable again.
    """
    global _postgres_pool
    if settings.storage.postgres.backend != "postgres":
        return None
    if _postgres_pool is None:
        config = settings.storage.postgres
        _postgres_pool = PostgresPool(
            dsn=config.connection_url or os.environ.get("DATABASE_URL"),
            min_size=config.min_pool_size,
            max_size=config.max_pool_size,
            command_timeout=config.command_timeout,
        )
    return _postgres_pool


async def get_redis_client(settings: SettingsDep) -> redis.Redis | None:
    """Get the shared Redis client, or None when Redis is not usable.

    An unreachable Redis degrades to in-memory stores, which are only
    correct for a single instance.
    """
    global _redis_client, _redis_checked
    if settings.storage.redis.backend != "redis":
        return None
    if not _redis_checked:
        _redis_checked = True
        config = settings.storage.redis
        redis_url = config.connection_url or os.environ.get("REDIS_URL", "redis://localhost:6379")
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=config.socket_timeout,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            logger.warning(
                "redis_unavailable_using_inmemory",
                url=redis_url.split("@")[-1],  # Log without credentials
                error=str(e),
            )
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_client_connected", url=redis_url.split("@")[-1])
    return _redis_client


RedisClientDep = Annotated[redis.Redis | None, Depends(get_redis_client)]


async def get_cache_store(settings: SettingsDep, client: RedisClientDep) -> CacheStore:
    """Get the fast (TTL key-value) store."""
    global _cache_store
    if _cache_store is None:
        if client is not None:
            _cache_store = RedisCacheStore(client, key_prefix=settings.storage.redis.key_prefix)
            logger.info("cache_store_initialized", store_type="redis")
        else:
            _cache_store = InMemoryCacheStore()
            logger.info("cache_store_initialized", store_type="inmemory")
    return _cache_store


async def get_durable_store(settings: SettingsDep) -> DurableStateStore:
    """Get the durable control-record store."""
    global _durable_store
    if _durable_store is None:
        pool = await get_postgres_pool(settings)
        if pool is not None:
            _durable_store = PostgresDurableStateStore(pool)
            logger.info("durable_store_initialized", store_type="postgres")
        else:
            _durable_store = InMemoryDurableStateStore()
            logger.info("durable_store_initialized", store_type="inmemory")
    return _durable_store


async def get_conversation_store(settings: SettingsDep) -> ConversationStore:
    global _conversation_store
    if _conversation_store is None:
        pool = await get_postgres_pool(settings)
        if pool is not None:
            _conversation_store = PostgresConversationStore(pool)
        else:
            _conversation_store = InMemoryConversationStore()
        logger.info(
            "conversation_store_initialized",
            store_type="postgres" if pool is not None else "inmemory",
        )
    return _conversation_store


async def get_lead_store(settings: SettingsDep) -> LeadStore:
    global _lead_store
    if _lead_store is None:
        pool = await get_postgres_pool(settings)
        _lead_store = PostgresLeadStore(pool) if pool is not None else InMemoryLeadStore()
        logger.info(
            "lead_store_initialized",
            store_type="postgres" if pool is not None else "inmemory",
        )
    return _lead_store


CacheStoreDep = Annotated[CacheStore, Depends(get_cache_store)]
DurableStoreDep = Annotated[DurableStateStore, Depends(get_durable_store)]
ConversationStoreDep = Annotated[ConversationStore, Depends(get_conversation_store)]
LeadStoreDep = Annotated[LeadStore, Depends(get_lead_store)]


async def get_bot_control(
    settings: SettingsDep,
    cache: CacheStoreDep,
    durable: DurableStoreDep,
) -> BotControl:
    """Get the Pause/Suppress Controller.

    Also installed as the process-wide instance behind pause_bot and the
    other module-level facades.
    """
    global _bot_control
    if _bot_control is None:
        bridge = StateBridge(
            cache,
            durable,
            default_ttl_seconds=settings.storage.bridge_default_ttl_seconds,
        )
        _bot_control = BotControl(bridge, settings.control)
        control_module.set_bot_control(_bot_control)
        logger.info("bot_control_initialized")
    return _bot_control


async def get_rate_limiter(settings: SettingsDep, client: RedisClientDep) -> MessageRateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        window: SlidingWindowStore | None
        if settings.storage.redis.backend == "none":
            window = None
        elif client is not None:
            window = RedisSlidingWindow(client, key_prefix=settings.storage.redis.key_prefix)
        else:
            window = InMemorySlidingWindow()
        _rate_limiter = MessageRateLimiter(window, settings.rate_limit)
        set_rate_limiter(_rate_limiter)
        logger.info(
            "rate_limiter_initialized",
            window=type(window).__name__ if window is not None else None,
        )
    return _rate_limiter


BotControlDep = Annotated[BotControl, Depends(get_bot_control)]
RateLimiterDep = Annotated[MessageRateLimiter, Depends(get_rate_limiter)]


def get_reply_generator(settings: SettingsDep) -> ReplyGenerator:
    return LLMReplyGenerator(
        create_executor_from_step_config(settings.providers.generator, "generator")
    )


async def get_turn_pipeline(
    settings: SettingsDep,
    control: BotControlDep,
    rate_limiter: RateLimiterDep,
    cache: CacheStoreDep,
    conversations: ConversationStoreDep,
    generator: Annotated[ReplyGenerator, Depends(get_reply_generator)],
) -> TurnControlPlane:
    """Get the turn control plane wired from settings."""
    global _turn_pipeline
    if _turn_pipeline is None:
        control_config = settings.control
        summarizer = ConversationStateSummarizer(
            create_executor_from_step_config(settings.providers.summarizer, "summarizer"),
            conversations,
            settings.summary,
        )
        _turn_pipeline = TurnControlPlane(
            control=control,
            rate_limiter=rate_limiter,
            lock=ConversationLock(
                cache,
                ttl_seconds=control_config.lock_ttl_seconds,
                wait_seconds=control_config.lock_wait_seconds,
                poll_interval_seconds=control_config.lock_poll_interval_seconds,
            ),
            conversations=conversations,
            generator=generator,
            summarizer=summarizer,
            deduplicator=MessageDeduplicator(
                cache,
                ttl_seconds=control_config.lock_ttl_seconds,
                timeout_seconds=control_config.check_timeout_seconds,
            ),
            progress_config=settings.progress,
            guard_config=settings.guard,
        )
        logger.info("turn_pipeline_initialized")
    return _turn_pipeline


async def get_classify_workflow(
    settings: SettingsDep,
    leads: LeadStoreDep,
    conversations: ConversationStoreDep,
) -> ClassifyLeadsWorkflow:
    global _classify_workflow
    if _classify_workflow is None:
        classifier = OutcomeClassifier(
            create_executor_from_step_config(settings.providers.classifier, "classifier")
        )
        _classify_workflow = ClassifyLeadsWorkflow(
            classifier,
            leads,
            conversations,
            settings.classification,
        )
        logger.info("classify_workflow_initialized")
    return _classify_workflow


TurnPipelineDep = Annotated[TurnControlPlane, Depends(get_turn_pipeline)]
ClassifyWorkflowDep = Annotated[ClassifyLeadsWorkflow, Depends(get_classify_workflow)]


async def reset_dependencies() -> None:
    """Reset all cached dependencies.

    Used for testing to ensure fresh instances.
    Closes connections before resetting.
    """
    global _postgres_pool, _redis_client, _redis_checked
    global _cache_store, _durable_store, _conversation_store, _lead_store
    global _bot_control, _rate_limiter, _turn_pipeline, _classify_workflow

    if _postgres_pool is not None:
        await _postgres_pool.close()
        _postgres_pool = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_checked = False

    _cache_store = None
    _durable_store = None
    _conversation_store = None
    _lead_store = None
    _bot_control = None
    _rate_limiter = None
    _turn_pipeline = None
    _classify_workflow = None
    control_module.set_bot_control(None)
    set_rate_limiter(None)
    get_settings.cache_clear()
