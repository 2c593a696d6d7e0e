"""Tests for request schemas and the signup summary."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError

from clubhub.modules.signup.models import SignupSession, SignupState
from clubhub.modules.signup.schemas import NextStep, SignupSessionSummary, next_step_for
from clubhub.modules.users.schemas import NewAccount, check_password_strength


def _account(password: str) -> dict:
    return {
        "email": "admin@example.com",
        "first_name": "Ada",
        "last_name": "Admin",
        "password": password,
    }


class TestPasswordPolicy:
    """Tests for the password complexity rules."""

    def test_accepts_complex_password(self) -> None:
        assert check_password_strength("SecurePass123!") == "SecurePass123!"

    @pytest.mark.parametrize(
        ("password", "missing"),
        [
            ("securepass123!", "uppercase letter"),
            ("SECUREPASS123!", "lowercase letter"),
            ("SecurePass!!!", "digit"),
            ("SecurePass123", "special character"),
        ],
    )
    def test_names_the_missing_class(self, password: str, missing: str) -> None:
        with pytest.raises(ValueError, match=missing):
            check_password_strength(password)

    def test_lists_every_missing_class(self) -> None:
        with pytest.raises(ValueError, match="uppercase letter, digit, special character"):
            check_password_strength("lowercaseonly")

    def test_schema_rejects_short_password(self) -> None:
        with pytest.raises(ValidationError):
            NewAccount(**_account("Ab1!"))

    def test_schema_rejects_long_password(self) -> None:
        with pytest.raises(ValidationError):
            NewAccount(**_account("Ab1!" * 40))

    def test_schema_rejects_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            NewAccount(**{**_account("SecurePass123!"), "email": "not-an-email"})


class TestNextStep:
    """Tests for deriving the client's next step."""

    def _session(self, state: SignupState, error_message: str | None = None) -> SignupSession:
        now = datetime.now(UTC)
        return SignupSession(
            id=uuid4(),
            plan_id=uuid4(),
            email="a@x.com",
            state=state,
            expires_at=now + timedelta(hours=1),
            last_activity_at=now,
            error_message=error_message,
        )

    @pytest.mark.parametrize(
        ("state", "step"),
        [
            (SignupState.STARTED, NextStep.CREATE_ADMIN),
            (SignupState.USER_CREATED, NextStep.CREATE_TENANT),
            (SignupState.TENANT_CREATED, NextStep.INITIATE_BILLING),
            (SignupState.BILLING_STARTED, NextStep.AWAIT_PAYMENT),
            (SignupState.BILLING_COMPLETE, NextStep.AWAIT_PAYMENT),
            (SignupState.COMPLETED, NextStep.DONE),
            (SignupState.EXPIRED, NextStep.RESTART),
        ],
    )
    def test_step_per_state(self, state: SignupState, step: NextStep) -> None:
        assert next_step_for(self._session(state)) == step

    def test_billing_failure_asks_for_retry(self) -> None:
        signup = self._session(SignupState.BILLING_STARTED, error_message="Card declined")
        assert next_step_for(signup) == NextStep.INITIATE_BILLING

    def test_summary_carries_next_step(self) -> None:
        summary = SignupSessionSummary.from_session(self._session(SignupState.STARTED))
        assert summary.next_step == NextStep.CREATE_ADMIN
        assert summary.state == SignupState.STARTED
