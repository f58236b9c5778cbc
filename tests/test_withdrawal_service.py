"""Tests for withdrawal domain service."""

from datetime import datetime

import pytest

from onchaincounting.domain.entities import (
    BlockchainNetwork,
    CryptoCurrency,
    WithdrawalStatus,
)
from onchaincounting.domain.errors import ConflictError, NotFoundError, ValidationError


def _create(withdrawal_service, **overrides):
    values = dict(
        date=datetime(2024, 5, 2),
        source_amount=1000.0,
        source_currency=CryptoCurrency.USDC,
        source_network=BlockchainNetwork.STARKNET,
        target_amount=920.0,
    )
    values.update(overrides)
    return withdrawal_service.create_withdrawal(**values)


def test_create_withdrawal_derives_rate(withdrawal_service):
    withdrawal_id = _create(withdrawal_service)

    withdrawal = withdrawal_service.get_withdrawal(withdrawal_id)
    assert withdrawal.exchange_rate == pytest.approx(0.92)
    assert withdrawal.status == WithdrawalStatus.PENDING


def test_create_withdrawal_keeps_explicit_rate(withdrawal_service):
    withdrawal_id = _create(withdrawal_service, exchange_rate=0.93, monerium_reference="ref-1")

    withdrawal = withdrawal_service.get_withdrawal(withdrawal_id)
    assert withdrawal.exchange_rate == 0.93
    assert withdrawal.monerium_reference == "ref-1"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"source_amount": 0.0}, "Source amount must be positive"),
        ({"target_amount": -1.0}, "Target amount must not be negative"),
    ],
)
def test_create_withdrawal_validation(withdrawal_service, overrides, message):
    with pytest.raises(ValidationError, match=message):
        _create(withdrawal_service, **overrides)


def test_create_withdrawal_duplicate_id(withdrawal_service):
    _create(withdrawal_service, withdrawal_id="w1")

    with pytest.raises(ConflictError):
        _create(withdrawal_service, withdrawal_id="w1")


def test_update_status(withdrawal_service):
    withdrawal_id = _create(withdrawal_service)

    updated = withdrawal_service.update_status(withdrawal_id, WithdrawalStatus.COMPLETED)

    assert updated.status == WithdrawalStatus.COMPLETED
    stored = withdrawal_service.get_withdrawal(withdrawal_id)
    assert stored.status == WithdrawalStatus.COMPLETED
    assert stored.target_amount == 920.0


def test_update_status_missing(withdrawal_service):
    with pytest.raises(NotFoundError, match="Withdrawal nope not found"):
        withdrawal_service.update_status("nope", WithdrawalStatus.FAILED)


def test_delete_withdrawal(withdrawal_service):
    withdrawal_id = _create(withdrawal_service)

    withdrawal_service.delete_withdrawal(withdrawal_id)

    assert withdrawal_service.list_withdrawals() == []
    with pytest.raises(NotFoundError):
        withdrawal_service.delete_withdrawal(withdrawal_id)
