from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.config import Config


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from inkthread.core.modules.access.service import AccessService  # noqa: PLC0415
    from inkthread.core.modules.comment.service import CommentService  # noqa: PLC0415
    from inkthread.core.modules.content.service import ContentService  # noqa: PLC0415
    from inkthread.core.modules.cooldown.service import CooldownService  # noqa: PLC0415
    from inkthread.core.modules.counter.service import CounterService  # noqa: PLC0415
    from inkthread.core.modules.notification.service import NotificationService  # noqa: PLC0415
    from inkthread.core.modules.thread.service import ThreadService  # noqa: PLC0415
    from inkthread.core.modules.user.service import UserService  # noqa: PLC0415
    from inkthread.core.modules.vote.service import VoteService  # noqa: PLC0415

    user: UserService
    content: ContentService
    access: AccessService
    counter: CounterService
    cooldown: CooldownService
    notification: NotificationService
    comment: CommentService
    vote: VoteService
    thread: ThreadService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup and shutdown
        service_configs = [
            ("user", "inkthread.core.modules.user.service", "UserService"),
            ("content", "inkthread.core.modules.content.service", "ContentService"),
            ("access", "inkthread.core.modules.access.service", "AccessService"),
            ("counter", "inkthread.core.modules.counter.service", "CounterService"),
            ("cooldown", "inkthread.core.modules.cooldown.service", "CooldownService"),
            ("notification", "inkthread.core.modules.notification.service", "NotificationService"),
            ("comment", "inkthread.core.modules.comment.service", "CommentService"),
            ("vote", "inkthread.core.modules.vote.service", "VoteService"),
            ("thread", "inkthread.core.modules.thread.service", "ThreadService"),
        ]

        # Dynamically import and instantiate services
        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        """Initialize core with config and MongoDB, then auto-register services.

        An already opened database may be passed in; the core then leaves its client alone on shutdown.
        """
        self.config = config
        if database is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        else:
            self.mongo_client = None
            self.database = database
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
