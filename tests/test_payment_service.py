from datetime import datetime, timezone
from decimal import Decimal

import pytest

from budgarden.core.exceptions import (
    JointAlreadyUpgradedError,
    PaymentNotFoundError,
    PaymentSignatureUsedError,
    PlayerNotFoundError,
    ValidationError,
)
from budgarden.models.items import InventoryEntry
from budgarden.schemas.payment import VerifyPaymentRequest
from budgarden.services.payment_service import PaymentService

PLAYER_WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
TREASURY_WALLET = "7Np41oeYqPefeNQEHSv1UDhYrehxin3NStELsSKCT4K2"


def signature(seed: str) -> str:
    return (seed * 88)[:88]


def payment_request(sig: str, used_for: str = "upgrade", **overrides) -> VerifyPaymentRequest:
    fields = {
        "signature": sig,
        "wallet_from": PLAYER_WALLET,
        "wallet_to": TREASURY_WALLET,
        "amount_sol": Decimal("0.05"),
        "transaction_time": datetime(2025, 1, 1, 11, 59, tzinfo=timezone.utc),
        "item_purchased": "sprout",
        "used_for": used_for,
    }
    fields.update(overrides)
    return VerifyPaymentRequest(**fields)


@pytest.fixture
def payment_service(seeded, settings, clock):
    def _make() -> PaymentService:
        return PaymentService(seeded(), settings, clock)

    return _make


def inventory_count(session_factory, player_id: str, item_kind: str) -> int:
    session = session_factory()
    try:
        entry = session.get(InventoryEntry, (player_id, item_kind))
        return entry.count if entry else 0
    finally:
        session.close()


class TestVerifiedPayments:
    def test_store_payment(self, register_player, payment_service):
        player = register_player("payer")

        stored = payment_service().store_verified_payment(player.id, payment_request(signature("A")))

        assert stored.id > 0
        assert stored.player_id == player.id
        assert stored.amount_sol == Decimal("0.05")
        assert payment_service().is_signature_used(signature("A")).used is True
        assert payment_service().is_signature_used(signature("B")).used is False

    def test_signature_reuse_is_rejected(self, register_player, payment_service):
        """같은 서명으로 두 번째 저장은 거절 (다른 용도로 바꿔도 동일)"""
        player = register_player("payer")
        payment_service().store_verified_payment(player.id, payment_request(signature("A")))

        with pytest.raises(PaymentSignatureUsedError) as exc_info:
            payment_service().store_verified_payment(
                player.id, payment_request(signature("A"), used_for="purchase")
            )

        assert exc_info.value.error_code == "PAYMENT_SIGNATURE_USED"

    def test_signature_reuse_by_another_player(self, register_player, payment_service):
        first = register_player("payer")
        second = register_player("copycat")
        payment_service().store_verified_payment(first.id, payment_request(signature("A")))

        with pytest.raises(PaymentSignatureUsedError):
            payment_service().store_verified_payment(second.id, payment_request(signature("A")))

    def test_concurrent_reuse_stores_once(
        self, register_player, payment_service, run_concurrently
    ):
        players = [register_player(f"racer{i}") for i in range(4)]
        ids = [player.id for player in players]

        def store():
            return payment_service().store_verified_payment(
                ids.pop(), payment_request(signature("C"))
            )

        results, errors = run_concurrently(4, store)

        assert len(results) == 1
        assert len(errors) == 3
        assert all(isinstance(e, PaymentSignatureUsedError) for e in errors)

    def test_payment_from_other_wallet_is_rejected(self, register_player, payment_service):
        player = register_player("payer")

        with pytest.raises(ValidationError):
            payment_service().store_verified_payment(
                player.id, payment_request(signature("A"), wallet_from=TREASURY_WALLET)
            )

        assert payment_service().is_signature_used(signature("A")).used is False

    def test_unknown_player(self, seeded, payment_service):
        with pytest.raises(PlayerNotFoundError):
            payment_service().store_verified_payment("missing", payment_request(signature("A")))


class TestJointUpgrade:
    def test_upgrade_once(self, register_player, payment_service, seeded, clock):
        # Given
        player = register_player("grower")
        payment_service().store_verified_payment(player.id, payment_request(signature("U")))
        assert payment_service().get_joint_upgrade_status(player.id).upgraded is False

        # When
        status = payment_service().mark_joint_upgraded(player.id, signature("U"))

        # Then: 플래그 설정 + 시작 sprout 1개에 업그레이드 sprout 1개 추가
        assert status.upgraded is True
        assert status.upgraded_at == clock()
        assert payment_service().get_joint_upgrade_status(player.id).upgraded is True
        assert inventory_count(seeded, player.id, "sprout") == 2

    def test_second_upgrade_is_rejected(self, register_player, payment_service, seeded):
        player = register_player("grower")
        payment_service().store_verified_payment(player.id, payment_request(signature("U")))
        payment_service().store_verified_payment(player.id, payment_request(signature("V")))
        payment_service().mark_joint_upgraded(player.id, signature("U"))

        with pytest.raises(JointAlreadyUpgradedError):
            payment_service().mark_joint_upgraded(player.id, signature("V"))

        assert inventory_count(seeded, player.id, "sprout") == 2

    def test_concurrent_upgrades_apply_once(
        self, register_player, payment_service, seeded, run_concurrently
    ):
        player = register_player("grower")
        payment_service().store_verified_payment(player.id, payment_request(signature("U")))

        results, errors = run_concurrently(
            4, lambda: payment_service().mark_joint_upgraded(player.id, signature("U"))
        )

        assert len(results) == 1
        assert all(isinstance(e, JointAlreadyUpgradedError) for e in errors)
        assert inventory_count(seeded, player.id, "sprout") == 2

    def test_requires_own_stored_payment(self, register_player, payment_service):
        owner = register_player("owner")
        other = register_player("other")
        payment_service().store_verified_payment(owner.id, payment_request(signature("U")))

        with pytest.raises(PaymentNotFoundError):
            payment_service().mark_joint_upgraded(other.id, signature("U"))
        with pytest.raises(PaymentNotFoundError):
            payment_service().mark_joint_upgraded(owner.id, signature("Z"))

        assert payment_service().get_joint_upgrade_status(other.id).upgraded is False

    def test_requires_upgrade_payment(self, register_player, payment_service):
        player = register_player("grower")
        payment_service().store_verified_payment(
            player.id, payment_request(signature("P"), used_for="purchase")
        )

        with pytest.raises(ValidationError):
            payment_service().mark_joint_upgraded(player.id, signature("P"))

        assert payment_service().get_joint_upgrade_status(player.id).upgraded is False
