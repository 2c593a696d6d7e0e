"""Factory for the platform plan catalogue."""

from uuid import uuid4

from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

from clubhub.modules.billing.models import BillingInterval, PlatformPlan


class PlatformPlanFactory(SQLAlchemyFactory[PlatformPlan]):
    """Factory for generating PlatformPlan rows."""

    __model__ = PlatformPlan

    @classmethod
    def name(cls) -> str:
        return f"{cls.__faker__.word().title()} Plan"

    @classmethod
    def description(cls) -> str:
        return cls.__faker__.sentence()

    @classmethod
    def price_in_cents(cls) -> int:
        return cls.__random__.choice([2900, 4900, 9900])

    @classmethod
    def currency(cls) -> str:
        return "usd"

    @classmethod
    def billing_interval(cls) -> str:
        return BillingInterval.MONTH

    @classmethod
    def stripe_product_id(cls) -> str:
        return f"prod_{uuid4().hex[:12]}"

    @classmethod
    def stripe_price_id(cls) -> str:
        return f"price_{uuid4().hex[:12]}"

    @classmethod
    def is_active(cls) -> bool:
        return True

    @classmethod
    def is_featured(cls) -> bool:
        return False

    @classmethod
    def display_order(cls) -> int:
        return 0
