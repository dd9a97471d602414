from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient

from clerk_ingest.repositories.clerk_users import ClerkUserRepository
from clerk_ingest.services.clerk_webhook import ClerkWebhookService
from clerk_ingest.services.config import Settings


@dataclass
class AppContainer:
    settings: Settings
    repository: ClerkUserRepository
    mongo_client: Optional[AsyncIOMotorClient] = None


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_user_repository(request: Request) -> ClerkUserRepository:
    return get_container(request).repository


def get_clerk_webhook_service(request: Request) -> ClerkWebhookService:
    container = get_container(request)
    return ClerkWebhookService(container.settings, container.repository)
