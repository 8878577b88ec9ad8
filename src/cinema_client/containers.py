"""Dependency container wiring for the client core."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from cinema_client.adapters.resource_client import (
    HttpxResourceClient,
    ResourceClient,
)
from cinema_client.app_logging import configure_logging
from cinema_client.config import Settings, normalize_token
from cinema_client.services.admin import AdminService
from cinema_client.services.booking import BookingService
from cinema_client.services.catalog import CatalogService
from cinema_client.services.identity import IdentityService
from cinema_client.services.repository import EntityRepository


@dataclass
class AppContainer:
    """Holds the services shared by one client session."""

    settings: Settings
    resource_client: ResourceClient
    repository: EntityRepository
    identity_service: IdentityService
    catalog_service: CatalogService
    booking_service: BookingService
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None,
    token_provider: Callable[[], str | None] | None = None,
) -> AppContainer:
    """Create the default dependency container.

    ``token_provider`` supplies the bearer credential; by default the
    configured ``api_token`` is used.
    """
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)
    configured_token = normalize_token(resolved_settings.api_token)
    resource_client = HttpxResourceClient.connect(
        base_url=resolved_settings.api_base_url,
        token_provider=token_provider or (lambda: configured_token),
        timeout=resolved_settings.request_timeout_seconds,
    )
    repository = EntityRepository(resource_client)
    identity_service = IdentityService(resource_client)
    catalog_service = CatalogService(
        repository=repository,
        identity=identity_service,
        page_size=resolved_settings.page_size,
        page_window=resolved_settings.page_window,
    )
    booking_service = BookingService(
        client=resource_client,
        repository=repository,
        identity=identity_service,
    )
    admin_service = AdminService(client=resource_client, repository=repository)

    async def close_resources() -> None:
        await resource_client.close()

    return AppContainer(
        settings=resolved_settings,
        resource_client=resource_client,
        repository=repository,
        identity_service=identity_service,
        catalog_service=catalog_service,
        booking_service=booking_service,
        admin_service=admin_service,
        close_resources=close_resources,
    )
