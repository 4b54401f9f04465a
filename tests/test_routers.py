from decimal import Decimal

import pytest

API = "/api/v1"


@pytest.fixture
def player(client):
    response = client.post(
        f"{API}/players/register",
        json={
            "username": "http_player",
            "wallet_address": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
            "invite_code": "system",
        },
    )
    assert response.status_code == 201
    return response.json()


def assert_error(response, status_code: int, code: str):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    return body["error"]


class TestHealthRoutes:
    def test_health(self, client):
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "ok", "error": None}
        assert "X-Request-ID" in response.headers


class TestPlayerRoutes:
    def test_register(self, player):
        assert player["username"] == "http_player"
        assert player["referred_by"] is None
        assert len(player["referral_code"]) == 5

    def test_register_invalid_invite(self, client):
        response = client.post(
            f"{API}/players/register",
            json={
                "username": "lost_soul",
                "wallet_address": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
                "invite_code": "ZZZZZ",
            },
        )

        assert_error(response, 404, "INVALID_INVITE_CODE")

    def test_register_username_taken(self, client, player):
        response = client.post(
            f"{API}/players/register",
            json={
                "username": "http_player",
                "wallet_address": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
                "invite_code": "SYSTEM",
            },
        )

        assert_error(response, 409, "USERNAME_TAKEN")

    def test_register_validation(self, client):
        response = client.post(
            f"{API}/players/register",
            json={"username": "x", "wallet_address": "short", "invite_code": "SYSTEM"},
        )

        assert_error(response, 422, "VALIDATION_001")

    def test_state(self, client, player):
        response = client.get(f"{API}/players/{player['id']}/state")

        assert response.status_code == 200
        data = response.json()
        assert data["player_id"] == player["id"]
        assert data["inventory"] == [{"item_kind": "sprout", "count": 1}]
        assert data["placed_items"] == []

    def test_state_unknown_player(self, client, seeded):
        response = client.get(f"{API}/players/nobody/state")

        assert_error(response, 404, "PLAYER_NOT_FOUND")

    def test_referrals(self, client, player):
        response = client.get(f"{API}/players/{player['id']}/referrals")

        assert response.status_code == 200
        assert response.json()["code"] == player["referral_code"]

    def test_ledger_and_integrity(self, client, player, clock):
        client.post(
            f"{API}/players/{player['id']}/placed-items",
            json={"item_kind": "sprout", "row": 2, "col": 2},
        )
        clock.advance(minutes=1)
        client.post(f"{API}/players/{player['id']}/harvest")

        ledger = client.get(f"{API}/players/{player['id']}/ledger", params={"limit": 10})
        integrity = client.get(f"{API}/players/{player['id']}/ledger/integrity")

        assert ledger.status_code == 200
        assert ledger.json()["total_count"] == 2
        assert integrity.json()["status"] == "OK"

    def test_ledger_limit_validation(self, client, player):
        response = client.get(f"{API}/players/{player['id']}/ledger", params={"limit": 0})

        assert_error(response, 422, "VALIDATION_001")


class TestBalanceRoutes:
    def test_balance_claim_harvest(self, client, player, clock):
        # Given
        player_id = player["id"]
        client.post(
            f"{API}/players/{player_id}/placed-items",
            json={"item_kind": "sprout", "row": 0, "col": 4},
        )
        clock.advance(minutes=2)

        # When
        balance = client.get(f"{API}/players/{player_id}/balance").json()
        claim = client.post(f"{API}/players/{player_id}/claim").json()
        harvest = client.post(f"{API}/players/{player_id}/harvest").json()

        # Then
        assert Decimal(balance["accumulated_balance"]) == Decimal("2000")
        assert Decimal(claim["claimed"]) == Decimal("2000")
        assert Decimal(harvest["claimed"]) == Decimal("2000")
        assert harvest["success"] is True

        after = client.get(f"{API}/players/{player_id}/balance").json()
        assert Decimal(after["total_balance"]) == Decimal("2000")
        assert Decimal(after["accumulated_balance"]) == Decimal("0")

    def test_claim_body_is_ignored(self, client, player):
        """클라이언트가 보낸 잔액 값은 사용되지 않는다"""
        response = client.post(
            f"{API}/players/{player['id']}/claim", json={"claimed": 999999999}
        )

        assert response.status_code == 200
        assert Decimal(response.json()["claimed"]) == Decimal("0")

    def test_unknown_player(self, client, seeded):
        assert_error(client.get(f"{API}/players/nobody/balance"), 404, "PLAYER_NOT_FOUND")
        assert_error(client.post(f"{API}/players/nobody/claim"), 404, "PLAYER_NOT_FOUND")
        assert_error(client.post(f"{API}/players/nobody/harvest"), 404, "PLAYER_NOT_FOUND")


class TestShopRoutes:
    def test_list_shop(self, client, player):
        response = client.get(f"{API}/players/{player['id']}/shop")

        assert response.status_code == 200
        assert response.json()["total_count"] == 3

    def test_purchase_insufficient_balance(self, client, player):
        response = client.post(
            f"{API}/players/{player['id']}/shop/purchase", json={"item_kind": "golden-bud"}
        )

        error = assert_error(response, 400, "BALANCE_001")
        assert Decimal(error["details"]["shortfall"]) == Decimal("60")

    def test_purchase_and_limit(self, client, player, set_total_balance):
        set_total_balance(player["id"], 100)

        first = client.post(
            f"{API}/players/{player['id']}/shop/purchase", json={"item_kind": "radio"}
        )
        second = client.post(
            f"{API}/players/{player['id']}/shop/purchase", json={"item_kind": "radio"}
        )

        assert first.status_code == 200
        assert first.json()["new_count"] == 1
        assert Decimal(first.json()["new_balance"]) == Decimal("90")
        assert_error(second, 409, "PURCHASE_LIMIT_REACHED")

    def test_purchase_unknown_item(self, client, player):
        response = client.post(
            f"{API}/players/{player['id']}/shop/purchase", json={"item_kind": "moon-rock"}
        )

        assert_error(response, 404, "UNKNOWN_ITEM")


class TestGridRoutes:
    def test_place_move_rotate_remove(self, client, player):
        base = f"{API}/players/{player['id']}/placed-items"

        placed = client.post(base, json={"item_kind": "sprout", "row": 3, "col": 3})
        assert placed.status_code == 201
        placed_item_id = placed.json()["placed_item_id"]

        occupied = client.post(base, json={"item_kind": "sprout", "row": 3, "col": 3})
        assert_error(occupied, 409, "TILE_OCCUPIED")

        moved = client.post(f"{base}/{placed_item_id}/move", json={"row": 4, "col": 4})
        rotated = client.post(f"{base}/{placed_item_id}/rotate", json={"rotation": 1})
        removed = client.delete(f"{base}/{placed_item_id}")

        assert moved.json() == {"success": True}
        assert rotated.json() == {"success": True}
        assert removed.json() == {"success": True}
        assert_error(client.delete(f"{base}/{placed_item_id}"), 404, "NOT_FOUND_001")

    def test_place_out_of_bounds(self, client, player):
        response = client.post(
            f"{API}/players/{player['id']}/placed-items",
            json={"item_kind": "sprout", "row": 7, "col": 0},
        )

        assert_error(response, 422, "VALIDATION_001")

    def test_rotate_rejects_invalid_value(self, client, player):
        response = client.post(
            f"{API}/players/{player['id']}/placed-items/1/rotate", json={"rotation": 3}
        )

        assert_error(response, 422, "VALIDATION_001")

    def test_place_not_in_inventory(self, client, player):
        response = client.post(
            f"{API}/players/{player['id']}/placed-items",
            json={"item_kind": "golden-bud", "row": 0, "col": 0},
        )

        assert_error(response, 409, "NOT_IN_INVENTORY")


class TestPaymentRoutes:
    SIGNATURE = "5" * 88

    def payment_body(self, used_for: str = "upgrade") -> dict:
        return {
            "signature": self.SIGNATURE,
            "wallet_from": "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
            "wallet_to": "7Np41oeYqPefeNQEHSv1UDhYrehxin3NStELsSKCT4K2",
            "amount_sol": "0.05",
            "transaction_time": "2025-01-01T11:59:00Z",
            "used_for": used_for,
        }

    def test_payment_replay_and_joint_upgrade(self, client, player):
        player_id = player["id"]

        unused = client.get(f"{API}/payments/{self.SIGNATURE}")
        assert unused.json() == {"signature": self.SIGNATURE, "used": False}

        stored = client.post(f"{API}/players/{player_id}/payments", json=self.payment_body())
        assert stored.status_code == 201
        assert client.get(f"{API}/payments/{self.SIGNATURE}").json()["used"] is True

        replay = client.post(
            f"{API}/players/{player_id}/payments", json=self.payment_body("purchase")
        )
        assert_error(replay, 409, "PAYMENT_SIGNATURE_USED")

        upgraded = client.post(
            f"{API}/players/{player_id}/joint-upgrade", json={"signature": self.SIGNATURE}
        )
        assert upgraded.status_code == 200
        assert upgraded.json()["upgraded"] is True

        again = client.post(
            f"{API}/players/{player_id}/joint-upgrade", json={"signature": self.SIGNATURE}
        )
        assert_error(again, 409, "JOINT_ALREADY_UPGRADED")

        status_response = client.get(f"{API}/players/{player_id}/joint-upgrade")
        assert status_response.json()["upgraded"] is True

    def test_upgrade_without_payment(self, client, player):
        response = client.post(
            f"{API}/players/{player['id']}/joint-upgrade", json={"signature": self.SIGNATURE}
        )

        assert_error(response, 404, "PAYMENT_NOT_FOUND")

    def test_payment_body_validation(self, client, player):
        body = self.payment_body()
        body["amount_sol"] = "0"

        response = client.post(f"{API}/players/{player['id']}/payments", json=body)

        assert response.status_code == 422
