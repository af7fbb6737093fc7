from functools import lru_cache
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.access_cache import NullAccessCache, RedisAccessCache
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.access_cache import AccessCache
from src.app.services.notification_dispatcher import NotificationDispatcher
from src.domain.plan import PlanCatalog

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_access_cache() -> AccessCache:
    if ApplicationConfig.CACHE_BACKEND == "redis":
        redis = Redis.from_url(ApplicationConfig.REDIS_URL, decode_responses=True)
        return RedisAccessCache(redis, ttl_seconds=ApplicationConfig.ACCESS_CACHE_TTL_SECONDS)
    return NullAccessCache()


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    service = create_notification_service(ApplicationConfig.PUSH_NOTIFICATION_URL, AsyncSessionLocal)
    return NotificationDispatcher(service)


@lru_cache
def get_plan_catalog() -> PlanCatalog:
    return PlanCatalog.from_settings(
        ApplicationConfig.PLAN_PRICES,
        ApplicationConfig.PLAN_DURATIONS,
        currency=ApplicationConfig.PAYMENT_CURRENCY,
    )


def get_session_factory():
    return AsyncSessionLocal
