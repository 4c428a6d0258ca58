# backend/carenow/container.py
"""
Composition root.

Wires settings, the database session, services and the push gateway with
plain constructor injection. Flows are built per use through the factory
methods so each wizard or tracker gets its own state.

All services share one session, so every flow built here runs its store
work on the container's single StoreExecutor thread.
"""

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .core.broadcast import connect_broadcast, disconnect_broadcast
from .core.config import Settings, settings as default_settings
from .core.executors import StoreExecutor
from .core.logging import setup_logging
from .database import create_db_engine, create_session_factory, init_db
from .flows.auth_flow import AuthFlow
from .flows.booking_flow import BookingFlow
from .flows.realtime_tracker import RealtimeBookingTracker
from .integrations.auth import AuthProvider
from .integrations.push import PushGateway, build_push_gateway
from .services.availability_service import AvailabilityService
from .services.booking_service import BookingService
from .services.notification_service import NotificationService
from .services.realtime_booking_service import RealtimeBookingService
from .services.review_service import ReviewService
from .services.service_catalog_service import ServiceCatalogService
from .services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    session: Session
    store: StoreExecutor
    push_gateway: PushGateway
    catalog_service: ServiceCatalogService
    availability_service: AvailabilityService
    notification_service: NotificationService
    realtime_service: RealtimeBookingService
    booking_service: BookingService
    review_service: ReviewService
    user_service: UserService
    _flows: list = field(default_factory=list, repr=False)
    _loop: Optional[asyncio.AbstractEventLoop] = field(default=None, repr=False)

    def booking_flow(self) -> BookingFlow:
        return BookingFlow(
            self.catalog_service, self.availability_service, self.booking_service, store=self.store
        )

    def realtime_tracker(self) -> RealtimeBookingTracker:
        return RealtimeBookingTracker(self.realtime_service)

    def auth_flow(self, provider: AuthProvider) -> AuthFlow:
        flow = AuthFlow(provider, self.user_service, store=self.store)
        if self._loop is not None:
            flow.bind_loop(self._loop)
        self._flows.append(flow)
        return flow

    async def start(self) -> None:
        """Configure logging, connect the change feed and bind the realtime bridge to this loop."""
        setup_logging(self.settings.log_level)
        await connect_broadcast(self.settings.broadcast_url)
        self._loop = asyncio.get_running_loop()
        self.realtime_service.bind_loop(self._loop)
        for flow in self._flows:
            flow.bind_loop(self._loop)

    async def shutdown(self) -> None:
        await disconnect_broadcast()
        self.close()

    def close(self) -> None:
        for flow in self._flows:
            flow.dispose()
        self._flows.clear()
        self.store.shutdown()
        self.session.close()


def build_container(
    settings: Optional[Settings] = None, session: Optional[Session] = None
) -> Container:
    """
    Build every component from ``settings``.

    Without ``session`` an engine is created from ``settings.database_url``
    and the schema is ensured.
    """
    settings = settings or default_settings
    if session is None:
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        session = create_session_factory(engine)()

    push_gateway = build_push_gateway(settings.push_provider, settings.push_console_history)
    realtime_service = RealtimeBookingService(settings=settings)
    notification_service = NotificationService(session, push_gateway, settings)

    container = Container(
        settings=settings,
        session=session,
        store=StoreExecutor(),
        push_gateway=push_gateway,
        catalog_service=ServiceCatalogService(session, settings=settings),
        availability_service=AvailabilityService(session, settings=settings),
        notification_service=notification_service,
        realtime_service=realtime_service,
        booking_service=BookingService(
            session,
            notification_service=notification_service,
            realtime_service=realtime_service,
            settings=settings,
        ),
        review_service=ReviewService(session, settings=settings),
        user_service=UserService(session),
    )
    logger.info(f"Container built for environment {settings.environment}")
    return container
