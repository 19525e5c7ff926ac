"""Thin async query client over the hosted Supabase tables."""

import logging
from typing import Any, Dict, List, Literal, Optional, Sequence
from pydantic import BaseModel
from supabase import acreate_client, AsyncClient

from config import Settings

logger = logging.getLogger(__name__)


class Filter(BaseModel):
    """A single column comparison, e.g. Filter(column="created_at", op="gte", value="2024-01-01")."""
    column: str
    op: Literal["eq", "gte", "lte", "lt"]
    value: Any


class SupabaseDataClient:
    """
    Query client used by the analytics operations.

    Only the four capabilities the tools need are exposed: count, select,
    update and delete. Each call is a single awaited PostgREST request.
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    def _apply_filters(self, query, filters: Optional[Sequence[Filter]]):
        for f in filters or []:
            query = getattr(query, f.op)(f.column, f.value)
        return query

    async def count(self, table: str, filters: Optional[Sequence[Filter]] = None) -> int:
        query = self.client.table(table).select("id", count="exact", head=True)
        query = self._apply_filters(query, filters)

        response = await query.execute()

        return response.count or 0

    async def select(
        self,
        table: str,
        columns: str,
        filters: Optional[Sequence[Filter]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        query = self.client.table(table).select(columns)
        query = self._apply_filters(query, filters)

        if order:
            query = query.order(order, desc=descending)
        if limit is not None:
            query = query.limit(limit)

        response = await query.execute()

        return response.data if response.data else []

    async def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = await self.client.table(table).update(patch).eq("id", row_id).execute()

        if response.data and len(response.data) > 0:
            return response.data[0]
        return None

    async def delete(self, table: str, row_id: str) -> None:
        await self.client.table(table).delete().eq("id", row_id).execute()


async def create_data_client(settings: Settings) -> SupabaseDataClient:
    """Connect to Supabase with the service key from settings."""
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError("Missing required Supabase configuration (SUPABASE_URL, SUPABASE_SERVICE_KEY)")

    client = await acreate_client(settings.supabase_url, settings.supabase_service_key)
    logger.info("Connected to Supabase at %s", settings.supabase_url)

    return SupabaseDataClient(client)
