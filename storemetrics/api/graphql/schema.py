import strawberry

# Import feature queries and mutations
from storemetrics.api.graphql.stores.queries import StoreQuery
from storemetrics.api.graphql.stores.mutations import StoreMutation
from storemetrics.api.graphql.analytics.queries import AnalyticsQuery

# Define root Query type by combining all feature queries
@strawberry.type
class Query(StoreQuery, AnalyticsQuery):
    pass

# Define root Mutation type by combining all feature mutations
@strawberry.type
class Mutation(StoreMutation):
    pass

# Create schema
schema = strawberry.Schema(query=Query, mutation=Mutation)
