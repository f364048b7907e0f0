import strawberry
from strawberry.types import Info
from strawberry.scalars import ID

@strawberry.type
class StoreMutation:
    @strawberry.mutation
    async def trigger_full_sync(
        self,
        info: Info,
        store_id: ID
    ) -> bool:
        from storemetrics.api.graphql.stores.resolvers import resolve_trigger_full_sync
        return await resolve_trigger_full_sync(info, store_id)

    @strawberry.mutation
    async def trigger_resync(
        self,
        info: Info,
        store_id: ID
    ) -> bool:
        from storemetrics.api.graphql.stores.resolvers import resolve_trigger_resync
        return await resolve_trigger_resync(info, store_id)

    @strawberry.mutation
    async def disconnect_store(
        self,
        info: Info,
        store_id: ID
    ) -> bool:
        from storemetrics.api.graphql.stores.resolvers import resolve_disconnect_store
        return await resolve_disconnect_store(info, store_id)
