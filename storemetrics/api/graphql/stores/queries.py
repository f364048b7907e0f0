import strawberry
from strawberry.types import Info
from strawberry.scalars import ID
from storemetrics.api.graphql.stores.types import Store

@strawberry.type
class StoreQuery:
    @strawberry.field
    async def store(self, info: Info, store_id: ID) -> Store:
        from storemetrics.api.graphql.stores.resolvers import resolve_store
        return await resolve_store(info, store_id)
