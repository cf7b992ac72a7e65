import pytest


def _payload(**overrides):
    payload = {
        "date": "2026-01-05",
        "asset": "BTC",
        "type": "buy",
        "quantity": 0.01,
        "totalILS": 2400,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_and_list_transactions(client):
    resp = await client.post("/api/v1/transactions", json=_payload())
    assert resp.status_code == 201
    created = resp.json()
    assert created["asset"] == "BTC"
    assert created["totalILS"] == 2400.0
    assert created["date"] == "2026-01-05"
    assert created["createdAt"]

    resp = await client.post("/api/v1/transactions", json=_payload(date="0", asset="nadlan", type="BUY"))
    assert resp.status_code == 201
    assert resp.json()["date"] == "0"
    assert resp.json()["asset"] == "Nadlan"
    assert resp.json()["type"] == "buy"

    resp = await client.get("/api/v1/transactions")
    assert resp.status_code == 200
    assert [tx["asset"] for tx in resp.json()] == ["BTC", "Nadlan"]


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "overrides",
    [
        {"date": "05/01/2026"},
        {"date": "2026-13-01"},
        {"asset": "DOGE"},
        {"type": "hold"},
        {"quantity": 0},
        {"totalILS": -5},
        {"quantity": 0.000000001},
        {"totalILS": 0.001},
    ],
)
async def test_create_rejects_invalid_input(client, overrides):
    resp = await client.post("/api/v1/transactions", json=_payload(**overrides))
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_requires_bearer_token(client):
    resp = await client.get("/api/v1/transactions", headers={"Authorization": ""})
    assert resp.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_users_see_only_their_transactions(client):
    created = (await client.post("/api/v1/transactions", json=_payload())).json()

    other = {"Authorization": "Bearer user-2"}
    assert (await client.get("/api/v1/transactions", headers=other)).json() == []
    resp = await client.delete(f"/api/v1/transactions/{created['id']}", headers=other)
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("method", ["put", "patch"])
async def test_partial_update(client, method):
    created = (await client.post("/api/v1/transactions", json=_payload())).json()

    resp = await client.request(
        method.upper(),
        f"/api/v1/transactions/{created['id']}",
        json={"type": "sell", "totalILS": 2600},
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["type"] == "sell"
    assert updated["totalILS"] == 2600.0
    assert updated["quantity"] == 0.01
    assert updated["date"] == "2026-01-05"

    resp = await client.patch(f"/api/v1/transactions/{created['id']}", json={"date": "0"})
    assert resp.json()["date"] == "0"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_and_delete_missing_return_404(client):
    resp = await client.patch("/api/v1/transactions/missing", json={"quantity": 1})
    assert resp.status_code == 404
    resp = await client.delete("/api/v1/transactions/missing")
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_rejects_invalid_fields(client):
    created = (await client.post("/api/v1/transactions", json=_payload())).json()
    for change in ({"quantity": -1}, {"quantity": 1e-9}, {"totalILS": 0.005}):
        resp = await client.patch(f"/api/v1/transactions/{created['id']}", json=change)
        assert resp.status_code == 422

    # Rejected changes leave the stored record readable
    resp = await client.get("/api/v1/transactions")
    assert resp.status_code == 200
    assert resp.json()[0]["quantity"] == 0.01


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_transaction(client):
    created = (await client.post("/api/v1/transactions", json=_payload())).json()
    resp = await client.delete(f"/api/v1/transactions/{created['id']}")
    assert resp.status_code == 200
    assert (await client.get("/api/v1/transactions")).json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_csv_import_creates_valid_rows(client):
    csv_text = (
        "Date,Asset,Type,Quantity,Total ILS\n"
        "2026-01-05,BTC,buy,0.01,2400\n"
        "2026-01-06,DOGE,buy,1,1\n"
        "0,Pension,buy,50000,50000\n"
    )
    resp = await client.post(
        "/api/v1/transactions/import",
        content=csv_text,
        headers={"Content-Type": "text/csv"},
    )
    assert resp.status_code == 201
    assert [tx["asset"] for tx in resp.json()] == ["BTC", "Pension"]
    assert len((await client.get("/api/v1/transactions")).json()) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_asset_catalog(client):
    resp = await client.get("/api/v1/assets")
    assert resp.status_code == 200
    catalog = {a["asset"]: a for a in resp.json()}
    assert set(catalog) == {"BTC", "ETH", "SPY", "Nadlan", "Pension", "Hishtalmut"}
    assert catalog["SPY"]["valuation_class"] == "market"
    assert catalog["Nadlan"]["valuation_class"] == "fixed_ils"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["db_connected"] is True
