"""
Azure Functions entry point for the wearable auth core.

Routes:
    POST /api/users/{user_id}/fitbit/auth          link and start the initial sync
    PUT  /api/users/{user_id}/fitbit/auth          link without syncing
    GET  /api/users/{user_id}/fitbit/auth          read the linked credential
    POST /api/users/{user_id}/fitbit/auth/revoke   revoke the provider token
    POST /api/users/{user_id}/fitbit/sync          sync now and return the result
    POST /api/fitbit/notifications                 provider change notifications

Run with: func start
"""

from typing import Optional

import azure.functions as func

from wearable_auth_core.api.http_handlers import AuthDataHttpHandlers
from wearable_auth_core.clients.provider_client import ProviderClient
from wearable_auth_core.clients.user_directory_client import UserDirectoryClient
from wearable_auth_core.config import get_config
from wearable_auth_core.db.db_config import (
    get_development_config,
    get_production_config,
    initialize_db,
)
from wearable_auth_core.messaging.event_bus import EventBus
from wearable_auth_core.repositories.auth_data_repository import AuthDataRepository
from wearable_auth_core.services.subscription_service import SubscriptionService
from wearable_auth_core.services.sync_service import SyncService
from wearable_auth_core.services.user_auth_data_service import UserAuthDataService
from wearable_auth_core.utils.logger import configure_logging
from wearable_auth_core.workers.background_worker import ThreadPoolBackgroundWorker

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

logger = configure_logging("wearable_auth")

_handlers: Optional[AuthDataHttpHandlers] = None


def get_handlers() -> AuthDataHttpHandlers:
    """Wire the services once per worker process."""
    global _handlers
    if _handlers is None:
        config = get_config()
        db_manager = initialize_db(
            get_production_config() if config.is_production() else get_development_config()
        )

        provider_client = ProviderClient(config.provider)
        event_bus = EventBus(config.queue)
        repository = AuthDataRepository(
            db_manager, UserDirectoryClient(config.directory), config.security.encryption_key
        )
        service = UserAuthDataService(
            repository=repository,
            provider_client=provider_client,
            subscription_service=SubscriptionService(provider_client, event_bus, config.queue),
            sync_service=SyncService(provider_client, event_bus, repository, config),
            worker=ThreadPoolBackgroundWorker(config.sync.worker_threads),
        )
        _handlers = AuthDataHttpHandlers(service)
        logger.info("Wearable auth services initialized", extra={"environment": config.environment})
    return _handlers


@app.route(route="users/{user_id}/fitbit/auth", methods=["POST"])
def link_credential_and_sync(req: func.HttpRequest) -> func.HttpResponse:
    return get_handlers().link_credential_and_sync(req)


@app.route(route="users/{user_id}/fitbit/auth", methods=["PUT"])
def link_credential(req: func.HttpRequest) -> func.HttpResponse:
    return get_handlers().link_credential(req)


@app.route(route="users/{user_id}/fitbit/auth", methods=["GET"])
def get_credential(req: func.HttpRequest) -> func.HttpResponse:
    return get_handlers().get_credential(req)


@app.route(route="users/{user_id}/fitbit/auth/revoke", methods=["POST"])
def revoke_credential(req: func.HttpRequest) -> func.HttpResponse:
    return get_handlers().revoke_credential(req)


@app.route(route="users/{user_id}/fitbit/sync", methods=["POST"])
def request_sync(req: func.HttpRequest) -> func.HttpResponse:
    return get_handlers().request_sync(req)


@app.route(route="fitbit/notifications", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def provider_notifications(req: func.HttpRequest) -> func.HttpResponse:
    return get_handlers().provider_notifications(req)
