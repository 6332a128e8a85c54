"""
Tests for the performance chart endpoint.

Journal dates are relative to today so the 1y window always splits them the
same way.
"""
import pytest
import pytest_asyncio
from datetime import date, timedelta
from decimal import Decimal

from conftest import USER_A, auth

TODAY = date.today()
OLD = (TODAY - timedelta(days=500)).isoformat()
MID = (TODAY - timedelta(days=200)).isoformat()
RECENT = (TODAY - timedelta(days=10)).isoformat()


async def add_journal(client, day, krw, usd="0", total=None, memo=None, user_id=USER_A):
    body = {"date": day, "cash": {"krw": str(krw), "usd": str(usd)}, "memo": memo}
    if total is not None:
        body["total_assets"] = str(total)
    response = await client.post("/api/journals", json=body, headers=auth(user_id))
    assert response.status_code == 201, response.text


@pytest_asyncio.fixture
async def history(client):
    await add_journal(client, OLD, 100000)
    await add_journal(client, MID, 150000, memo="rebalanced")
    await add_journal(client, RECENT, 200000)


@pytest.mark.asyncio
class TestPerformance:
    async def test_empty_history(self, client):
        response = await client.get("/api/performance", headers=auth())
        body = response.json()

        assert response.status_code == 200
        assert body["has_history"] is False
        assert body["data"] == []
        assert body["period_return"] is None
        assert body["period_return_label"] is None
        assert body["benchmark_status"] == "disabled"

    async def test_requires_identity(self, client):
        response = await client.get("/api/performance")
        assert response.status_code == 401

    async def test_all_window(self, client, history):
        response = await client.get("/api/performance", params={"range": "all"}, headers=auth())
        body = response.json()

        assert [p["date"] for p in body["data"]] == [OLD, MID, RECENT]
        assert [p["percent_change"] for p in body["data"]] == [0.0, 50.0, 100.0]
        assert [p["has_note"] for p in body["data"]] == [False, True, False]
        assert body["period_return"] == 100.0
        assert body["period_return_label"] == "+100.00%"
        assert body["latest_total_value"] == 200000
        assert body["latest_total_label"] == "20만원"
        assert body["data"][0]["label"] == "10만"

    async def test_one_year_window_rebases(self, client, history):
        response = await client.get("/api/performance", params={"range": "1y"}, headers=auth())
        body = response.json()

        assert body["range"] == "1y"
        assert [p["date"] for p in body["data"]] == [MID, RECENT]
        assert [p["percent_change"] for p in body["data"]] == [0.0, 33.33]

    async def test_unknown_range_means_all(self, client, history):
        response = await client.get("/api/performance", params={"range": "10y"}, headers=auth())
        body = response.json()

        assert body["range"] == "all"
        assert len(body["data"]) == 3

    async def test_live_versus_stored(self, client):
        # Saved when the dollar was at 1200
        await add_journal(client, RECENT, 0, usd="100", total=120000)

        live = (await client.get("/api/performance", headers=auth())).json()
        stored = (await client.get(
            "/api/performance", params={"source": "stored"}, headers=auth()
        )).json()

        assert Decimal(live["data"][0]["total_value"]) == Decimal("130000")
        assert Decimal(stored["data"][0]["total_value"]) == Decimal("120000")
        assert stored["source"] == "stored"

    async def test_benchmark_available(self, client, history, mock_reference_series):
        mock_reference_series.return_value = {
            OLD: Decimal("400"),
            MID: Decimal("500"),
            RECENT: Decimal("550"),
        }

        response = await client.get(
            "/api/performance", params={"range": "1y", "benchmark": "true"}, headers=auth()
        )
        body = response.json()

        assert body["benchmark_status"] == "available"
        assert body["benchmark_symbol"] == "SPY"
        assert [p["reference_percent_change"] for p in body["data"]] == [0.0, 10.0]
        assert body["benchmark_return"] == 10.0
        assert body["alpha"] == 23.33
        assert body["benchmark_return_label"] == "+10.00%"
        assert body["alpha_label"] == "+23.33%"
        mock_reference_series.assert_awaited_once_with(start=date.fromisoformat(MID))

    async def test_benchmark_unavailable(self, client, history, mock_reference_series):
        mock_reference_series.return_value = None

        response = await client.get(
            "/api/performance", params={"benchmark": "true"}, headers=auth()
        )
        body = response.json()

        assert response.status_code == 200
        assert body["benchmark_status"] == "unavailable"
        assert body["alpha"] is None
        assert body["alpha_label"] is None
        assert body["benchmark_return_label"] is None
        assert all(p["reference_percent_change"] is None for p in body["data"])
        assert body["period_return"] == 100.0

    async def test_benchmark_not_requested(self, client, history, mock_reference_series):
        body = (await client.get("/api/performance", headers=auth())).json()

        assert body["benchmark_status"] == "disabled"
        mock_reference_series.assert_not_awaited()
