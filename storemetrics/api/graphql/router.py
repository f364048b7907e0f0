from typing import Any, Dict

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import GraphQLRouter

from storemetrics.api.graphql.schema import schema
from storemetrics.crud.sql_repository import SqlSyncRepository
from storemetrics.db.base import get_db

async def get_context(request: Request, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Resolver context: the request, the session and a sync repository bound to it.
    """
    return {
        "request": request,
        "db": db,
        "repository": SqlSyncRepository(db),
    }

graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql"  # Enable GraphiQL interface for development
)
