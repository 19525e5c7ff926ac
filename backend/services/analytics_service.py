"""Analytics and user management operations backing the tools."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from models.tools import DateRange, ManageUserArgs, PaymentAnalyticsArgs, UserAnalyticsArgs
from services.data_client import Filter
from services.errors import InvalidArguments, MissingUserId, OperationFailed, UnknownAction

logger = logging.getLogger(__name__)

USERS_TABLE = "profiles"
PAYMENTS_TABLE = "payments"

ACTIVE_WINDOW_DAYS = 30
USER_LIST_LIMIT = 100
USER_COLUMNS = "id, email, name, created_at, role"
PAYMENT_COLUMNS = "amount, status, created_at"

MANAGE_USER_ACTIONS = ("list", "update", "delete")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def created_between(date_range: DateRange) -> List[Filter]:
    """Filters for rows created within the range, both days inclusive."""
    if not date_range.is_bounded:
        return []

    # created_at is a timestamp, so the end day is closed with "< next day"
    return [
        Filter(column="created_at", op="gte", value=date_range.start_date.isoformat()),
        Filter(column="created_at", op="lt", value=(date_range.end_date + timedelta(days=1)).isoformat()),
    ]


async def user_analytics(client, args: UserAnalyticsArgs) -> Dict[str, Any]:
    """Total, active (last 30 days) and new users in the requested range."""
    active_since = (_now() - timedelta(days=ACTIVE_WINDOW_DAYS)).isoformat()

    async def new_users() -> int:
        if not args.is_bounded:
            return 0
        return await client.count(USERS_TABLE, created_between(args))

    # Every count settles before a failure is reported
    results = await asyncio.gather(
        client.count(USERS_TABLE),
        client.count(USERS_TABLE, [Filter(column="updated_at", op="gte", value=active_since)]),
        new_users(),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    total_users, active_users, new_user_count = results

    return {
        "totalUsers": total_users or 0,
        "activeUsers": active_users or 0,
        "newUsers": new_user_count or 0,
        "lastUpdated": _now().isoformat()
    }


async def payment_analytics(client, args: PaymentAnalyticsArgs) -> Dict[str, Any]:
    """Revenue and conversion figures over the payments in the requested range."""
    payments = await client.select(PAYMENTS_TABLE, PAYMENT_COLUMNS, created_between(args))

    completed = [p for p in payments if p.get("status") == "completed"]

    total_revenue = sum((p.get("amount") or 0) for p in completed)
    total_transactions = len(payments)
    completed_transactions = len(completed)

    conversion_rate = (
        completed_transactions / total_transactions * 100
        if total_transactions > 0
        else 0
    )

    return {
        "totalRevenue": total_revenue,
        "totalTransactions": total_transactions,
        "completedTransactions": completed_transactions,
        "conversionRate": conversion_rate,
        "lastUpdated": _now().isoformat()
    }


async def list_users(client) -> Dict[str, Any]:
    users = await client.select(
        USERS_TABLE,
        USER_COLUMNS,
        order="created_at",
        descending=True,
        limit=USER_LIST_LIMIT
    )

    return {
        "users": users,
        "count": len(users),
        "lastUpdated": _now().isoformat()
    }


async def update_user(client, user_id: Optional[str], patch: Dict[str, Any]) -> Dict[str, Any]:
    if not user_id:
        raise MissingUserId("update")
    if not patch:
        raise InvalidArguments("No fields to update (expected one of: name, email, role)")

    logger.info("Updating user %s fields=%s", user_id, sorted(patch))

    user = await client.update(USERS_TABLE, user_id, patch)
    if user is None:
        raise OperationFailed(f"User not found: {user_id}")

    return {"user": user}


async def delete_user(client, user_id: Optional[str]) -> Dict[str, Any]:
    if not user_id:
        raise MissingUserId("delete")

    logger.info("Deleting user %s", user_id)

    # Reports success whenever the backend accepted the call, matched or not
    await client.delete(USERS_TABLE, user_id)

    return {"deleted": True, "userId": user_id}


async def manage_user(client, args: ManageUserArgs) -> Dict[str, Any]:
    """List, update or delete user profiles depending on `action`."""
    if args.action == "list":
        return await list_users(client)

    if args.action == "update":
        patch = args.data.to_patch() if args.data else {}
        return await update_user(client, args.user_id, patch)

    if args.action == "delete":
        return await delete_user(client, args.user_id)

    raise UnknownAction(args.action)
