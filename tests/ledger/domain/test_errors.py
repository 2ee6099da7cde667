"""Tests for the ledger failure taxonomy and the boundary translation."""

import pytest
from ledger.errors import (
    AlreadyProcessed,
    InsufficientStock,
    InvalidAdjustment,
    InvalidInput,
    LedgerBusy,
    LedgerError,
    LedgerUnavailable,
    NotFound,
    ledger_boundary,
)
from protean.exceptions import ObjectNotFoundError, ValidationError


class TestFailureKinds:
    @pytest.mark.parametrize(
        "error_cls, kind",
        [
            (InsufficientStock, "insufficient_stock"),
            (InvalidAdjustment, "invalid_adjustment"),
            (AlreadyProcessed, "already_processed"),
            (NotFound, "not_found"),
            (InvalidInput, "invalid_input"),
        ],
    )
    def test_business_failures_are_not_retryable(self, error_cls, kind):
        error = error_cls("refused")
        assert error.kind == kind
        assert error.retryable is False
        assert error.message == "refused"
        assert isinstance(error, ValidationError)

    @pytest.mark.parametrize("error_cls, kind", [(LedgerBusy, "ledger_busy"), (LedgerUnavailable, "ledger_unavailable")])
    def test_infrastructure_failures_are_retryable(self, error_cls, kind):
        error = error_cls("store down")
        assert error.kind == kind
        assert error.retryable is True
        assert not isinstance(error, ValidationError)

    def test_messages_are_keyed_by_field(self):
        assert InsufficientStock("only 3 left").messages == {"quantity": ["only 3 left"]}
        assert InvalidInput("bad", field="reference").messages == {"reference": ["bad"]}


class TestLedgerBoundary:
    def test_ledger_errors_pass_through(self):
        with pytest.raises(InsufficientStock):
            with ledger_boundary("deliver"):
                raise InsufficientStock("only 3 left")

    def test_object_not_found_becomes_not_found(self):
        with pytest.raises(NotFound) as exc:
            with ledger_boundary("validate"):
                raise ObjectNotFoundError("Document doc-1 does not exist")
        assert "doc-1" in exc.value.message

    def test_field_validation_becomes_invalid_input(self):
        with pytest.raises(InvalidInput) as exc:
            with ledger_boundary("register_product"):
                raise ValidationError({"sku": ["is required"]})
        assert isinstance(exc.value, LedgerError)
        assert "sku" in exc.value.message

    def test_infrastructure_errors_pass_through(self):
        with pytest.raises(LedgerBusy):
            with ledger_boundary("transfer"):
                raise LedgerBusy("timed out")

    def test_unrelated_errors_propagate_unchanged(self):
        with pytest.raises(KeyError):
            with ledger_boundary("transfer"):
                raise KeyError("boom")
