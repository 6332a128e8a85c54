"""
Tests for the journal CRUD endpoints.
"""
import pytest
from decimal import Decimal

from conftest import USER_A, USER_B, auth
from invest_journal.services.checklists import DEFAULT_BULL_MARKET_CHECKLIST

SAMPLE_JOURNAL = {
    "date": "2025-01-15",
    "foreign_stocks": [{"symbol": "AAPL", "price": "10", "quantity": "5"}],
    "domestic_stocks": [{"symbol": "005930", "price": "1000", "quantity": "2"}],
    "cryptocurrency": [],
    "cash": {"krw": "5000", "usd": "100"},
    "psychology_check": {"fear_greed_index": 70, "market_sentiments": ["greed"]},
    "memo": "First entry",
}


async def create(client, user_id=USER_A, **overrides):
    response = await client.post("/api/journals", json={**SAMPLE_JOURNAL, **overrides}, headers=auth(user_id))
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
class TestCreateJournal:
    async def test_requires_identity(self, client):
        response = await client.post("/api/journals", json=SAMPLE_JOURNAL)
        assert response.status_code == 401

    async def test_total_computed_from_holdings(self, client):
        journal = await create(client)

        assert journal["user_id"] == USER_A
        assert Decimal(journal["total_assets"]) == Decimal("202000")
        assert journal["psychology_check"]["fear_greed_index"] == 70

    async def test_explicit_total_is_kept(self, client):
        journal = await create(client, total_assets="180000")
        assert Decimal(journal["total_assets"]) == Decimal("180000")

    async def test_malformed_numbers_become_zero(self, client):
        journal = await create(
            client,
            foreign_stocks=[{"symbol": "AAPL", "price": "abc", "quantity": None}],
            domestic_stocks=[{"symbol": "005930", "price": "1,000", "quantity": "2"}],
            cash=None,
        )

        assert Decimal(journal["foreign_stocks"][0]["price"]) == Decimal("0")
        assert Decimal(journal["total_assets"]) == Decimal("2000")

    async def test_invalid_fear_greed_index(self, client):
        response = await client.post(
            "/api/journals",
            json={**SAMPLE_JOURNAL, "psychology_check": {"fear_greed_index": 150}},
            headers=auth(),
        )
        assert response.status_code == 422

    async def test_first_journal_gets_default_checklists(self, client):
        journal = await create(client)

        texts = [item["text"] for item in journal["bull_market_checklist"]]
        assert texts == DEFAULT_BULL_MARKET_CHECKLIST
        assert not any(item["checked"] for item in journal["bear_market_checklist"])

    async def test_checklists_inherited_unchecked(self, client):
        await create(client, bull_market_checklist=[
            {"id": "x1", "text": "Margin debt at record?", "checked": True},
        ])

        second = await create(client, date="2025-02-15")

        assert second["bull_market_checklist"] == [
            {"id": "x1", "text": "Margin debt at record?", "checked": False},
        ]

    async def test_upsert_by_id(self, client):
        first = await create(client, id="journal-1")
        updated = await create(client, id="journal-1", memo="Rewritten", date="2025-01-16")

        assert updated["id"] == first["id"] == "journal-1"
        assert updated["memo"] == "Rewritten"
        listing = (await client.get("/api/journals", headers=auth())).json()
        assert len(listing) == 1

    async def test_upsert_foreign_id_conflicts(self, client):
        await create(client, id="journal-1")
        response = await client.post(
            "/api/journals", json={**SAMPLE_JOURNAL, "id": "journal-1"}, headers=auth(USER_B)
        )
        assert response.status_code == 409


@pytest.mark.asyncio
class TestReadJournals:
    async def test_list_newest_first_and_owned_only(self, client):
        await create(client, date="2025-01-01")
        await create(client, date="2025-03-01")
        await create(client, user_id=USER_B, date="2025-02-01")

        response = await client.get("/api/journals", headers=auth())

        assert response.status_code == 200
        assert [j["date"] for j in response.json()] == ["2025-03-01", "2025-01-01"]

    async def test_detail_has_stored_and_live_totals(self, client, mock_fx_rate):
        journal = await create(client, total_assets="190000")

        response = await client.get(f"/api/journals/{journal['id']}", headers=auth())
        detail = response.json()

        assert response.status_code == 200
        assert Decimal(detail["total_assets"]) == Decimal("190000")
        assert detail["live_total_assets"] == 202000
        assert detail["breakdown"]["total"] == 202000
        assert Decimal(detail["breakdown"]["foreign_usd"]) == Decimal("50")
        assert Decimal(detail["breakdown"]["cash"]) == Decimal("135000")
        assert Decimal(detail["exchange_rate"]) == Decimal("1300")
        assert detail["total_assets_label"] == "19만원"
        assert detail["live_total_assets_text"] == "202,000원"

    async def test_detail_of_other_user_is_not_found(self, client):
        journal = await create(client)
        response = await client.get(f"/api/journals/{journal['id']}", headers=auth(USER_B))
        assert response.status_code == 404

    async def test_memos(self, client):
        await create(client, date="2025-01-01", memo="bought dip")
        await create(client, date="2025-02-01", memo=None)
        await create(client, date="2025-03-01", memo="", market_issues="CPI hot")

        response = await client.get("/api/journals/memos", headers=auth())

        assert [m["date"] for m in response.json()] == ["2025-03-01", "2025-01-01"]


@pytest.mark.asyncio
class TestUpdateDeleteJournal:
    async def test_holdings_change_recomputes_total(self, client):
        journal = await create(client)

        response = await client.put(
            f"/api/journals/{journal['id']}",
            json={"cash": {"krw": "10000", "usd": "0"}},
            headers=auth(),
        )

        # 65000 + 2000 + 10000
        assert Decimal(response.json()["total_assets"]) == Decimal("77000")

    async def test_note_change_keeps_total(self, client):
        journal = await create(client, total_assets="190000")

        response = await client.put(
            f"/api/journals/{journal['id']}", json={"memo": "edited"}, headers=auth()
        )

        assert response.json()["memo"] == "edited"
        assert Decimal(response.json()["total_assets"]) == Decimal("190000")

    async def test_update_other_users_journal(self, client):
        journal = await create(client)
        response = await client.put(
            f"/api/journals/{journal['id']}", json={"memo": "x"}, headers=auth(USER_B)
        )
        assert response.status_code == 404

    @pytest.mark.parametrize("field", ["date", "evaluation"])
    async def test_update_with_null_required_field(self, client, mock_fx_rate, field):
        journal = await create(client, total_assets="190000")

        response = await client.put(
            f"/api/journals/{journal['id']}", json={field: None}, headers=auth()
        )
        assert response.status_code == 422

        stored = (await client.get(f"/api/journals/{journal['id']}", headers=auth())).json()
        assert stored["date"] == journal["date"]
        assert Decimal(stored["evaluation"]) == Decimal(journal["evaluation"])

    async def test_delete(self, client):
        journal = await create(client)

        response = await client.delete(f"/api/journals/{journal['id']}", headers=auth())
        assert response.status_code == 200

        response = await client.get(f"/api/journals/{journal['id']}", headers=auth())
        assert response.status_code == 404
