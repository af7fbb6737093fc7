"""Subscription Expiry Background Worker

Periodically sends expiry warnings to users and expiration notices to
admins. Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.subscription_record_repository import SqlAlchemySubscriptionRecordRepository
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_dispatcher import NotificationDispatcher
from src.app.use_cases.entitlement import (
    CheckSubscriptionOnLogin,
    ExpirySweepResultDTO,
    SweepExpiringSubscriptions,
)

logger = logging.getLogger(__name__)


class ExpiryNotifierWorker:
    """
    Background worker for subscription expiry notices

    Features:
    - Warns users whose window ends in one of the warning thresholds
    - Tells admins about expired subscriptions
    - Shares notice dedup with login checks, so nobody is notified twice
    - Can run once or continuously

    Usage:
        # Run once
        worker = ExpiryNotifierWorker()
        result = await worker.run_once()

        # Run continuously
        worker = ExpiryNotifierWorker()
        await worker.run_forever(interval_seconds=3600)  # Hourly
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        warning_days: Optional[Iterable[int]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            session_factory: Existing session factory (skips engine creation)
            dispatcher: Notification dispatcher (defaults to configured sinks)
            warning_days: Warning thresholds (defaults to ApplicationConfig.EXPIRY_WARNING_DAYS)
            clock: Current UTC time
        """
        self.engine = None
        if session_factory is None:
            self.engine = create_async_engine(db_uri or ApplicationConfig.DB_URI, echo=False, future=True)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.dispatcher = dispatcher or NotificationDispatcher(
            create_notification_service(ApplicationConfig.PUSH_NOTIFICATION_URL, self.async_session_factory)
        )
        self.warning_days = tuple(warning_days or ApplicationConfig.EXPIRY_WARNING_DAYS)
        self.clock = clock

        logger.info("ExpiryNotifierWorker initialized")

    async def run_once(self) -> ExpirySweepResultDTO:
        """
        Run one sweep

        Returns:
            ExpirySweepResultDTO with sweep results
        """
        if not ApplicationConfig.EXPIRY_CHECK_ENABLED:
            logger.info("Expiry check is disabled, skipping")
            return ExpirySweepResultDTO(
                records_checked=0,
                expiring_soon=0,
                expired=0,
                failures=0,
                sweep_time=self.clock(),
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            record_repo = SqlAlchemySubscriptionRecordRepository(session)
            check = CheckSubscriptionOnLogin(
                uow=SqlAlchemyUnitOfWork(session),
                record_repo=record_repo,
                dispatcher=self.dispatcher,
                warning_days=self.warning_days,
                clock=self.clock,
            )

            result = await SweepExpiringSubscriptions(record_repo, check).execute()

        # Deliveries run in background tasks; let them finish before reporting
        await self.dispatcher.drain()

        if result.is_err():
            logger.error(f"Expiry sweep failed: {result.error.message}")
            raise RuntimeError(f"Expiry sweep failed: {result.error.message}")

        response = result.value
        if response.failures:
            logger.warning(f"{response.failures} account(s) could not be checked")

        return response

    async def run_forever(self, interval_seconds: int = 3600):
        """
        Run sweeps continuously at specified interval

        Args:
            interval_seconds: Seconds between sweeps (default: 1 hour)
        """
        logger.info(f"Starting continuous expiry sweep with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Expiry sweep complete. Checked {result.records_checked} subscriptions, "
                    f"{result.expiring_soon} expiring soon, {result.expired} expired "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Expiry sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.dispatcher.drain()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("ExpiryNotifierWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.expiry_notifier --once

        # Run continuously (default: EXPIRY_CHECK_INTERVAL_SECONDS)
        python -m src.worker.expiry_notifier

        # Run continuously with custom interval (in seconds)
        python -m src.worker.expiry_notifier --interval 600
    """
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Subscription Expiry Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.EXPIRY_CHECK_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: EXPIRY_CHECK_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = ExpiryNotifierWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Expiry sweep complete:")
            print(f"  Subscriptions checked: {result.records_checked}")
            print(f"  Expiring soon: {result.expiring_soon}")
            print(f"  Expired: {result.expired}")
            print(f"  Failures: {result.failures}")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
