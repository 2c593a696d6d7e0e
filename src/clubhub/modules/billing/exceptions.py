"""Billing-specific exceptions."""

from clubhub.core.errors import AppException


class BillingProviderError(AppException):
    """The billing provider failed or timed out; safe to retry manually."""

    message = "Billing provider request failed"
    error_code = "billing_provider_error"
    status_code = 502
