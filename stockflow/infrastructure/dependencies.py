"""Dependency wiring — builds one client session's object graph.

settings → httpx client → backend gateways → query cache → orchestrators,
queries and persisted stores. Nothing here is a module-level singleton:
each call to ``build_container`` returns an independent session.
"""

from dataclasses import dataclass

import httpx

from stockflow.application.interfaces import KeyValueStorage
from stockflow.application.services import (
    CategoryMutationService,
    DashboardQueries,
    InventoryMutationService,
    InventoryQueries,
    OrganizationMutationService,
    OrganizationSession,
    OrganizationStore,
    ProductMutationService,
    QueryCache,
    StaleTimes,
    StockMutationService,
    TaskDismissalStore,
    TechnicianMutationService,
)
from stockflow.config import Settings, get_settings
from stockflow.infrastructure.storage import JsonFileStorage
from stockflow.infrastructure.supabase import (
    SupabaseCategoryGateway,
    SupabaseClient,
    SupabaseDashboardGateway,
    SupabaseInventoryGateway,
    SupabaseOrganizationGateway,
    SupabaseProductGateway,
    SupabaseStockMovementGateway,
    SupabaseTechnicianGateway,
)


@dataclass
class StockflowContainer:
    settings: Settings
    http_client: httpx.AsyncClient
    client: SupabaseClient
    cache: QueryCache
    queries: InventoryQueries
    dashboard: DashboardQueries
    stock: StockMutationService
    inventory: InventoryMutationService
    products: ProductMutationService
    categories: CategoryMutationService
    technicians: TechnicianMutationService
    organizations: OrganizationMutationService
    organization_store: OrganizationStore
    organization_session: OrganizationSession
    task_dismissals: TaskDismissalStore

    async def aclose(self) -> None:
        """Cancel pending reads, disconnect subscribers, close the HTTP pool."""
        self.cache.clear()
        self.cache.shutdown()
        await self.http_client.aclose()


def build_container(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    storage: KeyValueStorage | None = None,
    access_token: str | None = None,
) -> StockflowContainer:
    settings = settings or get_settings()
    http_client = http_client or httpx.AsyncClient(timeout=settings.http_timeout)
    storage = storage or JsonFileStorage(settings.storage_dir)

    client = SupabaseClient(
        url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        access_token=access_token,
        timeout=settings.http_timeout,
        http_client=http_client,
    )
    movement_gateway = SupabaseStockMovementGateway(client)
    inventory_gateway = SupabaseInventoryGateway(client)
    product_gateway = SupabaseProductGateway(client)
    category_gateway = SupabaseCategoryGateway(client)
    technician_gateway = SupabaseTechnicianGateway(client)
    organization_gateway = SupabaseOrganizationGateway(client)
    dashboard_gateway = SupabaseDashboardGateway(client)

    stale_times = StaleTimes(
        realtime=settings.stale_time_realtime,
        moderate=settings.stale_time_moderate,
        slow=settings.stale_time_slow,
    )
    cache = QueryCache(
        retry=settings.query_retry,
        retry_delay=settings.query_retry_delay,
        default_stale_time=stale_times.realtime,
    )

    organization_store = OrganizationStore(storage)
    task_dismissals = TaskDismissalStore(storage)

    return StockflowContainer(
        settings=settings,
        http_client=http_client,
        client=client,
        cache=cache,
        queries=InventoryQueries(
            cache,
            products=product_gateway,
            movements=movement_gateway,
            categories=category_gateway,
            technicians=technician_gateway,
            organizations=organization_gateway,
            inventory=inventory_gateway,
            technician_activity=technician_gateway,
            stale_times=stale_times,
        ),
        dashboard=DashboardQueries(cache, dashboard_gateway, task_dismissals, stale_times),
        stock=StockMutationService(movement_gateway, cache),
        inventory=InventoryMutationService(inventory_gateway, cache),
        products=ProductMutationService(product_gateway, cache),
        categories=CategoryMutationService(category_gateway, cache),
        technicians=TechnicianMutationService(technician_gateway, cache),
        organizations=OrganizationMutationService(organization_gateway, cache),
        organization_store=organization_store,
        organization_session=OrganizationSession(organization_gateway, organization_store, cache),
        task_dismissals=task_dismissals,
    )
