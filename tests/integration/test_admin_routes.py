"""
Integration Tests - Admin API

✅ Admin key guard
✅ Catalogue CRUD and generator
✅ Balance injection
✅ Market configuration and simulator control
"""

import pytest

ADMIN = "/api/v1/admin"

NEW_PRODUCT = {
    "name": "Classroom Equity Fund",
    "type": "MUTUAL_FUND",
    "category": "EQUITY",
    "risk_level": "AGGRESSIVE",
    "expected_return": 14.0,
    "min_investment": 50000,
    "current_price": 1250.5,
    "description": "Demo fund",
}


@pytest.mark.integration
class TestAdminGuard:

    async def test_missing_key(self, client):
        response = await client.get(f"{ADMIN}/products")
        assert response.status_code == 401

    async def test_wrong_key(self, client):
        response = await client.get(f"{ADMIN}/products", headers={"X-Admin-Key": "nope"})
        assert response.status_code == 401


@pytest.mark.integration
class TestProductAdmin:

    async def test_create_and_fetch(self, client, admin_headers):
        response = await client.post(f"{ADMIN}/products", json=NEW_PRODUCT, headers=admin_headers)

        assert response.status_code == 201
        created = response.json()
        assert created["id"] > 0
        assert created["current_price"] == 1250.5
        assert created["initial_price"] == 1250.5
        assert created["is_active"] is True

        public = await client.get(f"/api/v1/products/{created['id']}")
        assert public.status_code == 200
        assert public.json()["name"] == "Classroom Equity Fund"

    async def test_update(self, client, admin_headers):
        created = (await client.post(f"{ADMIN}/products", json=NEW_PRODUCT, headers=admin_headers)).json()

        response = await client.put(
            f"{ADMIN}/products/{created['id']}",
            json={"current_price": 1300, "is_active": False},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["current_price"] == 1300.0
        assert response.json()["initial_price"] == 1250.5
        assert response.json()["is_active"] is False

        # Inactive products disappear from the public catalogue only
        public = (await client.get("/api/v1/products")).json()
        assert created["id"] not in [p["id"] for p in public]
        everything = (await client.get(f"{ADMIN}/products", headers=admin_headers)).json()
        assert created["id"] in [p["id"] for p in everything]

    async def test_update_missing(self, client, admin_headers):
        response = await client.put(f"{ADMIN}/products/9999", json={"name": "x"}, headers=admin_headers)
        assert response.status_code == 404

    async def test_delete(self, client, admin_headers):
        created = (await client.post(f"{ADMIN}/products", json=NEW_PRODUCT, headers=admin_headers)).json()

        response = await client.delete(f"{ADMIN}/products/{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert (await client.get(f"/api/v1/products/{created['id']}")).status_code == 404

    async def test_delete_refused_when_traded(self, client, admin_headers, user_headers, product_by_name):
        fund = product_by_name["Sharia Money Market Fund"]
        await client.post(
            "/api/v1/investment/buy", json={"product_id": fund.id, "amount": 100000}, headers=user_headers
        )

        response = await client.delete(f"{ADMIN}/products/{fund.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "product_in_use"

    async def test_delete_missing(self, client, admin_headers):
        response = await client.delete(f"{ADMIN}/products/9999", headers=admin_headers)
        assert response.status_code == 404

    async def test_generate(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/products/generate",
            json={"count": 3, "product_types": ["BOND"], "risk_range": {"min": 8, "max": 10}},
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["generated_count"] == 3
        assert len(body["products"]) == 3
        for product in body["products"]:
            assert product["type"] == "BOND"
            assert product["category"] == "FIXED_INCOME"
            assert product["risk_level"] == "AGGRESSIVE"

        listed = (await client.get("/api/v1/products")).json()
        assert len(listed) == 3

    async def test_generate_invalid(self, client, admin_headers):
        response = await client.post(f"{ADMIN}/products/generate", json={"count": 0}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_request"


@pytest.mark.integration
class TestBalanceInjection:

    async def test_inject(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/users/balance", json={"user_id": "student-7", "amount": 250000}, headers=admin_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["new_balance"] == 1250000.0
        assert body["transaction"]["type"] == "DEPOSIT"
        assert body["transaction"]["product_id"] is None

        history = (await client.get("/api/v1/transactions", headers={"X-User-Id": "student-7"})).json()
        assert [t["type"] for t in history] == ["DEPOSIT"]
        assert history[0]["product"] is None

    async def test_inject_over_limit(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/users/balance",
            json={"user_id": "student-7", "amount": 100000000.01},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_order"

    async def test_inject_non_positive(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/users/balance", json={"user_id": "student-7", "amount": -5}, headers=admin_headers
        )
        assert response.status_code == 422

    async def test_inject_amount_beyond_decimal_precision(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/users/balance", json={"user_id": "student-7", "amount": 1e30}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_order"


@pytest.mark.integration
class TestUserViews:

    async def _inject(self, client, admin_headers, user_id, amount):
        response = await client.post(
            f"{ADMIN}/users/balance", json={"user_id": user_id, "amount": amount}, headers=admin_headers
        )
        assert response.status_code == 201

    async def test_users_listing(self, client, admin_headers, user_headers, product_by_name):
        fund = product_by_name["Sharia Money Market Fund"]
        await client.post(
            "/api/v1/investment/buy", json={"product_id": fund.id, "amount": 100000}, headers=user_headers
        )
        await client.post(
            "/api/v1/lessons/progress", json={"lesson_day": 1, "quiz_score": 80}, headers=user_headers
        )
        for amount in range(1, 8):
            await self._inject(client, admin_headers, "student-7", amount * 1000)

        response = await client.get(f"{ADMIN}/users", headers=admin_headers)

        assert response.status_code == 200
        users = {u["user_id"]: u for u in response.json()}
        assert set(users) == {"user-1", "student-7"}

        investor = users["user-1"]
        assert investor["rdn_balance"] == 900000.0
        assert investor["total_value"] == 100000.0
        assert investor["transaction_count"] == 1
        assert investor["progress_count"] == 1
        assert investor["recent_injections"] == []

        student = users["student-7"]
        assert student["transaction_count"] == 7
        assert student["progress_count"] == 0
        assert [t["amount"] for t in student["recent_injections"]] == [7000.0, 6000.0, 5000.0, 4000.0, 3000.0]

    async def test_users_requires_admin(self, client):
        response = await client.get(f"{ADMIN}/users")
        assert response.status_code == 401

    async def test_balance_injections(self, client, admin_headers):
        await self._inject(client, admin_headers, "student-7", 250000)
        await self._inject(client, admin_headers, "student-8", 100000.5)
        await self._inject(client, admin_headers, "student-7", 50000)

        response = await client.get(f"{ADMIN}/users/balance-injections", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 3
        assert body["total_users"] == 2
        assert body["total_injected"] == 400000.5
        assert [t["amount"] for t in body["injections"]] == [50000.0, 100000.5, 250000.0]
        assert all(t["type"] == "DEPOSIT" for t in body["injections"])

    async def test_balance_injections_empty(self, client, admin_headers):
        body = (await client.get(f"{ADMIN}/users/balance-injections", headers=admin_headers)).json()
        assert body == {"total_injected": 0.0, "total_users": 0, "count": 0, "injections": []}

    async def test_platform_stats(self, client, admin_headers, user_headers, product_by_name):
        fund = product_by_name["Sharia Money Market Fund"]
        await client.put(
            f"{ADMIN}/products/{product_by_name['Government Bond Fund'].id}",
            json={"is_active": False},
            headers=admin_headers,
        )
        await client.post(
            "/api/v1/investment/buy", json={"product_id": fund.id, "amount": 100000}, headers=user_headers
        )
        await client.post(
            "/api/v1/lessons/progress", json={"lesson_day": 2, "quiz_score": 60}, headers=user_headers
        )
        await self._inject(client, admin_headers, "student-7", 1000)

        response = await client.get(f"{ADMIN}/stats", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total_users"] == 2
        assert body["total_products"] == len(product_by_name)
        assert body["active_products"] == len(product_by_name) - 1
        assert body["total_transactions"] == 2
        assert body["total_lessons"] == 3
        assert body["completed_lessons"] == 1
        assert [t["type"] for t in body["recent_transactions"]] == ["DEPOSIT", "BUY"]


@pytest.mark.integration
class TestMarketConfig:

    async def test_defaults_from_yaml(self, client, admin_headers):
        response = await client.get(f"{ADMIN}/market/config", headers=admin_headers)

        assert response.status_code == 200
        config = response.json()["config"]
        assert config["simulation_interval_ms"] == 10000
        assert config["risk_volatility"]["AGGRESSIVE"] == 0.1

    async def test_partial_update_persists(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/market/config",
            json={"config": {"random_factor": 0.5, "simulation_interval_ms": 20000}},
            headers=admin_headers,
        )
        assert response.status_code == 200

        config = (await client.get(f"{ADMIN}/market/config", headers=admin_headers)).json()["config"]
        assert config["random_factor"] == 0.5
        assert config["simulation_interval_ms"] == 20000
        assert config["market_trend_factor"] == 0.7

    async def test_invalid_update_writes_nothing(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/market/config",
            json={"config": {"random_factor": 0.5, "min_price_floor": 2}},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_market_config"

        config = (await client.get(f"{ADMIN}/market/config", headers=admin_headers)).json()["config"]
        assert config["random_factor"] == 0.3

    async def test_empty_update(self, client, admin_headers):
        response = await client.post(f"{ADMIN}/market/config", json={"config": {}}, headers=admin_headers)
        assert response.status_code == 400

    async def test_set_single_value(self, client, admin_headers):
        response = await client.put(
            f"{ADMIN}/market/config",
            json={"key": "type_volatility",
                  "value": {"MONEY_MARKET": 0.1, "FIXED_INCOME": 0.2, "MIXED": 0.3, "EQUITY": 4.5}},
            headers=admin_headers,
        )
        assert response.status_code == 200

        config = (await client.get(f"{ADMIN}/market/config", headers=admin_headers)).json()["config"]
        assert config["type_volatility"]["EQUITY"] == 4.5

    async def test_set_unknown_key(self, client, admin_headers):
        response = await client.put(
            f"{ADMIN}/market/config", json={"key": "leverage", "value": 3}, headers=admin_headers
        )
        assert response.status_code == 400


@pytest.mark.integration
class TestMarketControl:

    async def test_start_status_stop(self, client, admin_headers):
        status = (await client.get(f"{ADMIN}/market/control", headers=admin_headers)).json()
        assert status["is_running"] is False

        started = await client.post(
            f"{ADMIN}/market/control", json={"action": "start", "interval_ms": 60000}, headers=admin_headers
        )
        assert started.status_code == 200
        assert started.json()["is_running"] is True
        assert started.json()["interval_ms"] == 60000
        assert started.json()["next_run_at"] is not None

        stopped = await client.post(f"{ADMIN}/market/control", json={"action": "stop"}, headers=admin_headers)
        assert stopped.json()["is_running"] is False

    async def test_start_uses_configured_interval(self, client, admin_headers):
        await client.put(
            f"{ADMIN}/market/config", json={"key": "simulation_interval_ms", "value": 45000}, headers=admin_headers
        )

        started = await client.post(f"{ADMIN}/market/control", json={"action": "start"}, headers=admin_headers)

        assert started.json()["interval_ms"] == 45000

    async def test_start_rejects_bad_interval(self, client, admin_headers):
        response = await client.post(
            f"{ADMIN}/market/control", json={"action": "start", "interval_ms": 500}, headers=admin_headers
        )
        assert response.status_code == 400

    async def test_unknown_action(self, client, admin_headers):
        response = await client.post(f"{ADMIN}/market/control", json={"action": "pause"}, headers=admin_headers)
        assert response.status_code == 422


@pytest.mark.integration
class TestSimulate:

    async def test_no_products(self, client, admin_headers):
        response = await client.post(f"{ADMIN}/market/simulate", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["updated"] == 0
        assert response.json()["message"] == "No active products found"

    async def test_tick_moves_prices_and_revalues(self, client, admin_headers, user_headers, product_by_name):
        fund = product_by_name["Sharia Equity Fund"]
        await client.post(
            "/api/v1/investment/buy", json={"product_id": fund.id, "amount": 200000}, headers=user_headers
        )

        response = await client.post(f"{ADMIN}/market/simulate", headers=admin_headers)

        body = response.json()
        assert body["updated"] == 6
        assert body["portfolios_revalued"] == 1
        move = next(p for p in body["products"] if p["id"] == fund.id)
        assert move["old_price"] == 2500.0

        product = (await client.get(f"/api/v1/products/{fund.id}")).json()
        assert product["current_price"] == pytest.approx(move["new_price"])

        history = (await client.get(f"/api/v1/products/{fund.id}/history")).json()
        assert len(history["points"]) == 1
        assert history["points"][0]["price"] == pytest.approx(move["new_price"])

        portfolio = (await client.get("/api/v1/investment/portfolio", headers=user_headers)).json()
        assert portfolio["holdings"][0]["current_value"] == pytest.approx(80 * move["new_price"], abs=0.01)
