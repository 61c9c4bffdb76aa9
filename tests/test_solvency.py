import pytest

from order_engine import solvency
from order_engine.exceptions import OrderValidationError
from order_engine.models import AccountSnapshot


def account(balance, credit=0.0):
    return AccountSnapshot(balance=balance, credit=credit, access=True)


class TestSubmitEnabled:

    def test_enabled_for_affordable_margin(self):
        assert solvency.submit_enabled(33.33, account(1000)) is True

    def test_disabled_while_loading_or_submitting(self):
        assert solvency.submit_enabled(10, account(1000), loading=True) is False
        assert solvency.submit_enabled(10, account(1000), submitting=True) is False

    def test_disabled_when_margin_exceeds_ceiling(self):
        assert solvency.submit_enabled(1000.01, account(500, 500)) is False
        assert solvency.submit_enabled(1000, account(500, 500)) is True

    @pytest.mark.parametrize("balance,credit,margin", [
        (0, 5000, 1),
        (-10, 5000, 0),
        (0, 0, 0),
        (-50, 100, 10),
    ])
    def test_disabled_without_positive_cash_balance(self, balance, credit, margin):
        assert solvency.submit_enabled(margin, account(balance, credit)) is False

    def test_disabled_when_ceiling_not_positive(self):
        assert solvency.submit_enabled(0, account(10, -10)) is False


class TestAdvisory:

    def test_advisory_shown_for_credit_only_accounts(self):
        assert solvency.advisory(account(0, 1000)) == solvency.DEPOSIT_REQUIRED

    def test_no_advisory_with_cash(self):
        assert solvency.advisory(account(0.01)) is None


class TestValidateSubmission:

    def test_zero_quantity_checked_first(self):
        with pytest.raises(OrderValidationError, match="Increase quantity"):
            solvency.validate_submission(0, 5000, account(0))

    def test_margin_over_ceiling(self):
        with pytest.raises(OrderValidationError, match="Insufficient balance for required margin"):
            solvency.validate_submission(100, 200, account(100))

    def test_credit_only_rejected(self):
        with pytest.raises(OrderValidationError, match="Deposit funds required"):
            solvency.validate_submission(100, 10, account(0, 1000))

    def test_valid_order_passes(self):
        solvency.validate_submission(1000, 33.33, account(1000))
