import asyncio
from datetime import datetime

import pytest

from conftest import FakeDataClient
from models.tools import ManageUserArgs, PaymentAnalyticsArgs, UserAnalyticsArgs
from services import analytics_service
from services.errors import InvalidArguments, MissingUserId, OperationFailed, UnknownAction


@pytest.mark.asyncio
async def test_user_analytics_without_range_reports_no_new_users(data_client):
    result = await analytics_service.user_analytics(data_client, UserAnalyticsArgs())

    assert result["totalUsers"] == 4
    assert result["activeUsers"] == 2
    assert result["newUsers"] == 0
    datetime.fromisoformat(result["lastUpdated"])


@pytest.mark.asyncio
async def test_user_analytics_with_only_one_bound_reports_no_new_users(data_client):
    result = await analytics_service.user_analytics(
        data_client, UserAnalyticsArgs(startDate="2024-01-01")
    )

    assert result["newUsers"] == 0


@pytest.mark.asyncio
async def test_user_analytics_range_is_inclusive_on_both_days(data_client):
    result = await analytics_service.user_analytics(
        data_client, UserAnalyticsArgs(startDate="2024-01-01", endDate="2024-01-31")
    )

    # u1 (Jan 1 00:00) and u2 (Jan 31 23:59) count; Dec 31 and Feb 1 do not
    assert result["newUsers"] == 2


@pytest.mark.asyncio
async def test_user_analytics_reversed_range_is_empty_not_an_error(data_client):
    result = await analytics_service.user_analytics(
        data_client, UserAnalyticsArgs(startDate="2024-01-31", endDate="2024-01-01")
    )

    assert result["newUsers"] == 0
    assert result["totalUsers"] == 4


@pytest.mark.asyncio
async def test_user_analytics_fails_when_any_count_fails(profiles):
    client = FakeDataClient({"profiles": profiles}, fail_on={"count"})

    with pytest.raises(RuntimeError):
        await analytics_service.user_analytics(client, UserAnalyticsArgs())


class SlowFilteredCounts(FakeDataClient):
    """Unfiltered count fails at once; filtered counts finish a little later."""

    def __init__(self):
        super().__init__()
        self.finished = []

    async def count(self, table, filters=None):
        if not filters:
            raise RuntimeError("backend count failed")
        await asyncio.sleep(0.01)
        self.finished.append(filters[0].column)
        return 1


@pytest.mark.asyncio
async def test_user_analytics_waits_for_every_count_before_failing():
    client = SlowFilteredCounts()

    with pytest.raises(RuntimeError, match="backend count failed"):
        await analytics_service.user_analytics(
            client, UserAnalyticsArgs(startDate="2024-01-01", endDate="2024-01-31")
        )

    assert sorted(client.finished) == ["created_at", "updated_at"]


@pytest.mark.asyncio
async def test_payment_analytics_revenue_and_conversion(data_client):
    result = await analytics_service.payment_analytics(data_client, PaymentAnalyticsArgs())

    assert result["totalRevenue"] == 100
    assert result["totalTransactions"] == 2
    assert result["completedTransactions"] == 1
    assert result["conversionRate"] == 50


@pytest.mark.asyncio
async def test_payment_analytics_with_no_payments():
    result = await analytics_service.payment_analytics(FakeDataClient({"payments": []}), PaymentAnalyticsArgs())

    assert result["totalRevenue"] == 0
    assert result["totalTransactions"] == 0
    assert result["completedTransactions"] == 0
    assert result["conversionRate"] == 0


@pytest.mark.asyncio
async def test_payment_analytics_returns_unrounded_rate():
    client = FakeDataClient({"payments": [
        {"amount": 10, "status": "completed", "created_at": "2024-01-01"},
        {"amount": 10, "status": "failed", "created_at": "2024-01-01"},
        {"amount": 10, "status": "pending", "created_at": "2024-01-01"},
    ]})

    result = await analytics_service.payment_analytics(client, PaymentAnalyticsArgs())

    assert result["conversionRate"] == pytest.approx(100 / 3)


@pytest.mark.asyncio
async def test_payment_analytics_filters_by_range(data_client):
    result = await analytics_service.payment_analytics(
        data_client, PaymentAnalyticsArgs(startDate="2024-01-06", endDate="2024-01-31")
    )

    assert result["totalTransactions"] == 1
    assert result["totalRevenue"] == 0


@pytest.mark.asyncio
async def test_list_users_is_newest_first_with_projection(data_client):
    result = await analytics_service.manage_user(data_client, ManageUserArgs(action="list"))

    assert result["count"] == 4
    assert [u["id"] for u in result["users"]] == ["u3", "u2", "u1", "u4"]
    assert set(result["users"][0]) == {"id", "email", "name", "created_at", "role"}


@pytest.mark.asyncio
async def test_list_users_is_capped_at_one_hundred():
    rows = [{"id": f"u{i}", "created_at": f"2024-01-01T00:00:{i % 60:02d}"} for i in range(150)]

    result = await analytics_service.manage_user(FakeDataClient({"profiles": rows}), ManageUserArgs(action="list"))

    assert result["count"] == 100


@pytest.mark.asyncio
async def test_update_without_user_id_never_reaches_backend(data_client):
    with pytest.raises(MissingUserId):
        await analytics_service.manage_user(data_client, ManageUserArgs(action="update", data={"name": "X"}))

    assert "update" not in data_client.methods_called()


@pytest.mark.asyncio
async def test_update_applies_only_provided_fields(data_client):
    result = await analytics_service.manage_user(
        data_client, ManageUserArgs(action="update", userId="u2", data={"role": "admin"})
    )

    assert result["user"]["role"] == "admin"
    assert result["user"]["name"] == "Bo"
    assert data_client.calls[-1] == ("update", "profiles", "u2", {"role": "admin"})


@pytest.mark.asyncio
async def test_update_with_empty_patch_is_rejected(data_client):
    with pytest.raises(InvalidArguments):
        await analytics_service.manage_user(data_client, ManageUserArgs(action="update", userId="u2"))


@pytest.mark.asyncio
async def test_update_of_missing_user_fails(data_client):
    with pytest.raises(OperationFailed, match="User not found"):
        await analytics_service.manage_user(
            data_client, ManageUserArgs(action="update", userId="nope", data={"name": "X"})
        )


@pytest.mark.asyncio
async def test_delete_without_user_id(data_client):
    with pytest.raises(MissingUserId):
        await analytics_service.manage_user(data_client, ManageUserArgs(action="delete", userId=""))

    assert "delete" not in data_client.methods_called()


@pytest.mark.asyncio
async def test_delete_removes_row(data_client):
    result = await analytics_service.manage_user(data_client, ManageUserArgs(action="delete", userId="u1"))

    assert result["deleted"] is True
    assert all(r["id"] != "u1" for r in data_client.tables["profiles"])


@pytest.mark.asyncio
async def test_delete_of_missing_user_still_reports_deleted(data_client):
    result = await analytics_service.manage_user(data_client, ManageUserArgs(action="delete", userId="x"))

    assert result == {"deleted": True, "userId": "x"}


@pytest.mark.asyncio
async def test_unknown_action(data_client):
    with pytest.raises(UnknownAction, match="bogus"):
        await analytics_service.manage_user(data_client, ManageUserArgs(action="bogus"))
