"""Signup orchestrator and activation reconciler.

A signup session walks forward through
Started → UserCreated → TenantCreated → BillingStarted → Completed and
never back. Each step checks the session's state first, so replayed or
out-of-order requests fail with ``InvalidSignupStateError`` instead of
writing twice.

Activation is the only step that can be reached concurrently (webhook
push and client polling race for it). It is made exclusive by a
compare-and-set update on the session row inside one transaction; no
application-level lock is involved.
"""

from datetime import datetime, timedelta
from typing import Annotated
from uuid import UUID, uuid4

import structlog
from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clubhub.api.dependencies import DBSession
from clubhub.config import settings
from clubhub.core.auth.models import PlatformRole
from clubhub.core.auth.service import IdentityService, normalize_email
from clubhub.core.constants import (
    MAX_ERROR_MESSAGE_LENGTH,
    PLAN_ID_KEY,
    SIGNUP_SESSION_ID_KEY,
    TENANT_ID_KEY,
)
from clubhub.core.database import utc_now
from clubhub.core.errors import ConflictError, NotFoundError, ValidationError
from clubhub.core.utils.text import normalize_subdomain
from clubhub.modules.billing.models import SubscriptionStatus, TenantSubscription
from clubhub.modules.billing.repos import PlanRepository, SubscriptionRepository
from clubhub.modules.billing.stripe_client import CheckoutSessionInfo, StripeClientDep
from clubhub.modules.signup.exceptions import (
    ActivationError,
    InvalidSignupStateError,
    SignupAlreadyCompletedError,
    SignupSessionExpiredError,
)
from clubhub.modules.signup.models import TERMINAL_STATES, SignupSession, SignupState
from clubhub.modules.signup.repos import SignupSessionRepository
from clubhub.modules.signup.schemas import SignupSessionSummary
from clubhub.modules.tenants.directory import TenantDirectoryDep
from clubhub.modules.tenants.models import Tenant, TenantStatus
from clubhub.modules.tenants.repos import TenantRepository
from clubhub.modules.users.models import PlatformUser, TenantRole, TenantUser, TenantUserStatus
from clubhub.modules.users.repos import PlatformUserRepository, TenantUserRepository


logger = structlog.get_logger()

# States in which the plan may still be switched by restarting
PLAN_CHANGEABLE_STATES = frozenset(
    {SignupState.STARTED, SignupState.USER_CREATED, SignupState.TENANT_CREATED}
)


class SignupService:
    """Drives signup sessions and activates tenants once payment is verified.

    Every operation commits its own transition. Tenant creation writes
    to the tenant directory before the registry, so it also needs the
    directory store.
    """

    def __init__(
        self,
        db: DBSession,
        stripe: StripeClientDep,
        directory: TenantDirectoryDep,
    ) -> None:
        self.db = db
        self.stripe = stripe
        self.directory = directory
        self.sessions = SignupSessionRepository(db)
        self.plans = PlanRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.tenants = TenantRepository(db)
        self.people = PlatformUserRepository(db)
        self.memberships = TenantUserRepository(db)
        self.identity = IdentityService(db)

    # ============================================================
    # Session loading and preconditions
    # ============================================================

    async def _load(self, session_id: UUID) -> SignupSession:
        signup = await self.sessions.get_by_id(session_id)
        if not signup:
            raise NotFoundError(
                "Signup session not found",
                resource="signup_session",
                resource_id=str(session_id),
            )
        return signup

    async def _expire(self, signup: SignupSession, now: datetime) -> None:
        signup.state = SignupState.EXPIRED
        signup.last_activity_at = now
        await self.db.commit()
        logger.info("signup_session_expired", signup_session_id=str(signup.id))

    async def _load_open(self, session_id: UUID) -> SignupSession:
        """Load a session for a read or transition, applying lazy expiry.

        Raises:
            NotFoundError: If the session does not exist
            SignupSessionExpiredError: If the session is or just became Expired
        """
        signup = await self._load(session_id)
        if signup.state == SignupState.EXPIRED:
            raise SignupSessionExpiredError(details={"signup_session_id": str(signup.id)})

        now = utc_now()
        if signup.state not in TERMINAL_STATES and signup.is_expired(now):
            # Committed before raising so the flip survives the error response
            await self._expire(signup, now)
            raise SignupSessionExpiredError(details={"signup_session_id": str(signup.id)})
        return signup

    @staticmethod
    def _require_state(signup: SignupSession, *expected: SignupState) -> None:
        if signup.state in expected:
            return
        if signup.state == SignupState.COMPLETED:
            raise SignupAlreadyCompletedError(details={"signup_session_id": str(signup.id)})
        raise InvalidSignupStateError(
            expected=[str(state) for state in expected],
            actual=str(signup.state),
        )

    async def _resolve(
        self,
        signup_session_id: UUID | str | None,
        checkout_session_id: str | None,
    ) -> SignupSession | None:
        """Find a session by explicit id, else by checkout session id."""
        if signup_session_id:
            try:
                session_id = (
                    signup_session_id
                    if isinstance(signup_session_id, UUID)
                    else UUID(str(signup_session_id))
                )
            except ValueError:
                logger.warning(
                    "signup_session_id_malformed",
                    signup_session_id=str(signup_session_id),
                )
            else:
                signup = await self.sessions.get_by_id(session_id)
                if signup:
                    return signup
        if checkout_session_id:
            return await self.sessions.get_by_checkout_session(checkout_session_id)
        return None

    # ============================================================
    # Orchestrator
    # ============================================================

    async def start(self, plan_id: UUID, email: str) -> SignupSession:
        """Start a signup for a plan, or pick up the email's open session.

        Args:
            plan_id: Platform plan to buy
            email: Contact email of the admin

        Returns:
            A Started session, or the email's newest open session

        Raises:
            NotFoundError: If the plan does not exist or is not offered
        """
        plan = await self.plans.get_active(plan_id)
        if not plan:
            raise NotFoundError(
                "Plan not found",
                resource="platform_plan",
                resource_id=str(plan_id),
            )

        email = normalize_email(email)
        now = utc_now()

        existing = await self.sessions.get_latest_open_for_email(email)
        if existing and existing.is_expired(now):
            existing.state = SignupState.EXPIRED
            existing.last_activity_at = now
            logger.info("signup_session_expired", signup_session_id=str(existing.id))
        elif existing:
            if existing.plan_id != plan.id and existing.state in PLAN_CHANGEABLE_STATES:
                existing.plan_id = plan.id
            existing.last_activity_at = now
            await self.db.commit()
            logger.info(
                "signup_session_resumed",
                signup_session_id=str(existing.id),
                state=existing.state,
            )
            return existing

        signup = await self.sessions.create(
            SignupSession(
                plan_id=plan.id,
                email=email,
                state=SignupState.STARTED,
                expires_at=now + timedelta(hours=settings.signup_session_ttl_hours),
                last_activity_at=now,
            )
        )
        await self.db.commit()
        logger.info(
            "signup_session_started",
            signup_session_id=str(signup.id),
            plan_id=str(plan.id),
        )
        return signup

    async def create_admin(
        self,
        session_id: UUID,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
    ) -> SignupSession:
        """Create the admin's credential and person.

        Raises:
            ConflictError: If the email is already registered
            InvalidSignupStateError: If the session is not Started
            SignupSessionExpiredError: If the session expired
        """
        signup = await self._load_open(session_id)
        self._require_state(signup, SignupState.STARTED)

        identity_user = await self.identity.create_user(
            email=email,
            password=password,
            platform_role=PlatformRole.PLATFORM_USER,
        )
        await self.people.create(
            PlatformUser(
                identity_user_id=identity_user.id,
                first_name=first_name,
                last_name=last_name,
                is_active=True,
            )
        )

        signup.email = identity_user.email
        signup.first_name = first_name
        signup.last_name = last_name
        signup.identity_user_id = identity_user.id
        signup.state = SignupState.USER_CREATED
        signup.last_activity_at = utc_now()
        await self.db.commit()

        logger.info(
            "signup_admin_created",
            signup_session_id=str(signup.id),
            identity_user_id=str(identity_user.id),
        )
        return signup

    async def create_tenant(
        self,
        session_id: UUID,
        organization_name: str,
        subdomain: str,
    ) -> SignupSession:
        """Create the tenant, its directory entry and the owner membership.

        The directory entry is written and committed first. If that fails
        nothing reaches the registry. If the registry commit then fails,
        the directory entry is left behind as an orphan and logged.

        Args:
            session_id: The signup session
            organization_name: Tenant display name
            subdomain: Requested subdomain, normalized here

        Returns:
            The session, now TenantCreated

        Raises:
            ValidationError: If the subdomain is malformed
            ConflictError: If the subdomain is taken
            TenantDirectoryError: If the directory write failed
            InvalidSignupStateError: If the session is not UserCreated
            SignupSessionExpiredError: If the session expired
        """
        signup = await self._load_open(session_id)
        self._require_state(signup, SignupState.USER_CREATED)
        if not signup.identity_user_id:
            raise InvalidSignupStateError(
                expected=str(SignupState.USER_CREATED),
                actual=str(signup.state),
                message="Signup session has no admin user",
            )

        try:
            normalized = normalize_subdomain(subdomain)
        except ValueError as e:
            raise ValidationError(
                "Invalid subdomain",
                error_code="invalid_subdomain",
                errors=[{"field": "subdomain", "message": str(e)}],
            ) from e

        if await self.tenants.subdomain_exists(normalized) or await self.directory.resolve(
            normalized
        ):
            raise ConflictError(
                f"Subdomain '{normalized}' is already taken",
                error_code="subdomain_taken",
                details={"subdomain": normalized},
            )

        person = await self.people.get_by_identity(signup.identity_user_id)
        if not person:
            raise NotFoundError(
                "Platform user not found for signup admin",
                resource="platform_user",
                resource_id=str(signup.identity_user_id),
            )

        tenant_id = uuid4()
        await self.directory.add(tenant_id, normalized, organization_name)

        try:
            tenant = await self.tenants.create(
                Tenant(
                    id=tenant_id,
                    name=organization_name,
                    subdomain=normalized,
                    status=TenantStatus.PENDING_ACTIVATION,
                )
            )
            await self.memberships.create(
                TenantUser(
                    tenant_id=tenant.id,
                    platform_user_id=person.id,
                    role=TenantRole.ADMIN,
                    status=TenantUserStatus.ACTIVE,
                    is_owner=True,
                    created_by="signup",
                )
            )
            if person.default_tenant_id is None:
                person.default_tenant_id = tenant.id

            signup.tenant_id = tenant.id
            signup.organization_name = organization_name
            signup.subdomain = normalized
            signup.state = SignupState.TENANT_CREATED
            signup.last_activity_at = utc_now()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "tenant_directory_orphaned",
                signup_session_id=str(session_id),
                tenant_id=str(tenant_id),
                subdomain=normalized,
                error=str(e),
            )
            if isinstance(e, IntegrityError):
                raise ConflictError(
                    f"Subdomain '{normalized}' is already taken",
                    error_code="subdomain_taken",
                    details={"subdomain": normalized},
                ) from e
            raise

        logger.info(
            "signup_tenant_created",
            signup_session_id=str(signup.id),
            tenant_id=str(tenant_id),
            subdomain=normalized,
        )
        return signup

    async def initiate_billing(
        self,
        session_id: UUID,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSessionInfo:
        """Start (or retry) checkout for the session's plan.

        An open checkout session from an earlier attempt is reused when
        reuse is enabled. A checkout that was already paid is never
        replaced: the signup is reconciled against it instead, and the
        paid checkout is returned while activation is still pending.
        Only a missing or expired checkout is replaced. Nothing is
        persisted if Stripe fails.

        Returns:
            The checkout session the client should be sent to

        Raises:
            ValidationError: If the plan has no Stripe price
            BillingProviderError: If Stripe fails
            InvalidSignupStateError: If no tenant has been created yet
            SignupAlreadyCompletedError: If the paid checkout activated the signup
            SignupSessionExpiredError: If the session expired
        """
        signup = await self._load_open(session_id)
        self._require_state(signup, SignupState.TENANT_CREATED, SignupState.BILLING_STARTED)
        if not signup.tenant_id:
            raise InvalidSignupStateError(
                expected=str(SignupState.TENANT_CREATED),
                actual=str(signup.state),
                message="Signup session has no tenant",
            )

        plan = await self.plans.get(signup.plan_id)
        if not plan or not plan.stripe_price_id:
            raise ValidationError(
                "Plan has no price configured",
                error_code="missing_price",
                details={"plan_id": str(signup.plan_id)},
            )

        checkout: CheckoutSessionInfo | None = None
        if signup.checkout_session_id:
            existing = await self.stripe.get_checkout_session(signup.checkout_session_id)
            log = logger.bind(
                signup_session_id=str(signup.id), checkout_session_id=signup.checkout_session_id
            )
            if existing and existing.is_paid:
                # Payment went through but its webhook has not arrived yet
                signup_id = signup.id
                state = await self.refresh_from_provider(signup_id)
                if state == SignupState.COMPLETED:
                    raise SignupAlreadyCompletedError(
                        details={"signup_session_id": str(signup_id)}
                    )
                log.warning("checkout_paid_activation_pending", state=str(state))
                return existing
            if existing and existing.status == "complete":
                log.info("checkout_payment_processing")
                return existing
            if (
                existing
                and existing.status == "open"
                and existing.url
                and settings.signup_reuse_checkout_session
            ):
                checkout = existing
                log.info("checkout_session_reused")

        if checkout is None:
            checkout = await self.stripe.create_checkout_session(
                price_id=plan.stripe_price_id,
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=signup.email,
                metadata={
                    SIGNUP_SESSION_ID_KEY: str(signup.id),
                    TENANT_ID_KEY: str(signup.tenant_id),
                    PLAN_ID_KEY: str(plan.id),
                },
            )
            logger.info(
                "checkout_session_created",
                signup_session_id=str(signup.id),
                checkout_session_id=checkout.id,
            )

        signup.checkout_session_id = checkout.id
        signup.error_message = None
        signup.state = SignupState.BILLING_STARTED
        signup.last_activity_at = utc_now()
        await self.db.commit()
        return checkout

    async def record_billing_failure(
        self,
        error_message: str,
        checkout_session_id: str | None = None,
        signup_session_id: UUID | str | None = None,
    ) -> SignupSession | None:
        """Record a provider-reported payment failure without changing state.

        Unknown sessions are logged and ignored.
        """
        signup = await self._resolve(signup_session_id, checkout_session_id)
        if not signup:
            logger.warning(
                "billing_failure_session_not_found",
                checkout_session_id=checkout_session_id,
                signup_session_id=str(signup_session_id) if signup_session_id else None,
            )
            return None
        if signup.state in TERMINAL_STATES:
            logger.info(
                "billing_failure_ignored",
                signup_session_id=str(signup.id),
                state=signup.state,
            )
            return signup

        signup.error_message = error_message[:MAX_ERROR_MESSAGE_LENGTH]
        signup.last_activity_at = utc_now()
        await self.db.commit()
        logger.warning(
            "billing_failure_recorded",
            signup_session_id=str(signup.id),
            error_message=signup.error_message,
        )
        return signup

    async def get(self, session_id: UUID) -> SignupSession:
        """Get a session, applying lazy expiry."""
        return await self._load_open(session_id)

    async def resume(self, session_id: UUID) -> SignupSessionSummary:
        """Resume a session the client is returning to.

        Raises:
            NotFoundError: If the session does not exist
            SignupSessionExpiredError: If the session expired
            SignupAlreadyCompletedError: If the session is Completed
        """
        signup = await self._load_open(session_id)
        if signup.state == SignupState.COMPLETED:
            raise SignupAlreadyCompletedError(details={"signup_session_id": str(signup.id)})
        signup.last_activity_at = utc_now()
        await self.db.commit()
        return SignupSessionSummary.from_session(signup)

    # ============================================================
    # Activation reconciler
    # ============================================================

    async def activate(
        self,
        subscription_id: str,
        customer_id: str,
        merchant_account_id: str | None,
        period_start: datetime | None,
        period_end: datetime | None,
        checkout_session_id: str | None = None,
        signup_session_id: UUID | str | None = None,
    ) -> SignupSession:
        """Activate the session's tenant once payment has been verified.

        Idempotent: activating a Completed session changes nothing, and of
        several concurrent callers exactly one performs the writes. Not
        subject to lazy expiry.

        Args:
            subscription_id: Stripe subscription that was paid
            customer_id: Stripe customer that paid
            merchant_account_id: Connect account to record on the tenant
            period_start: Start of the paid period
            period_end: End of the paid period
            checkout_session_id: Checkout session, used when no session id is given
            signup_session_id: Signup session, preferred over the checkout id

        Returns:
            The session, Completed

        Raises:
            NotFoundError: If no session matches
            ActivationError: If the session has no tenant
        """
        signup = await self._resolve(signup_session_id, checkout_session_id)
        if not signup:
            raise NotFoundError(
                "Signup session not found for activation",
                resource="signup_session",
                resource_id=str(signup_session_id or checkout_session_id),
            )
        if not signup.tenant_id:
            raise ActivationError(
                "Signup session has no tenant to activate",
                details={"signup_session_id": str(signup.id)},
            )
        if signup.state == SignupState.COMPLETED:
            logger.info("activation_already_completed", signup_session_id=str(signup.id))
            return signup

        log = logger.bind(
            signup_session_id=str(signup.id),
            tenant_id=str(signup.tenant_id),
            subscription_id=subscription_id,
        )
        now = utc_now()

        try:
            if not await self.sessions.mark_completed(signup.id, now):
                await self.db.rollback()
                await self.db.refresh(signup)
                log.info("activation_lost_race")
                return signup

            tenant = await self.tenants.get_by_id(signup.tenant_id)
            if not tenant:
                raise ActivationError(
                    "Tenant not found for activation",
                    details={"tenant_id": str(signup.tenant_id)},
                )

            subscription = await self.subscriptions.get_by_tenant(tenant.id)
            if subscription is None:
                subscription = self.subscriptions.add(TenantSubscription(tenant_id=tenant.id))
            subscription.plan_id = signup.plan_id
            subscription.stripe_subscription_id = subscription_id
            subscription.stripe_customer_id = customer_id
            subscription.status = SubscriptionStatus.ACTIVE
            subscription.current_period_start = period_start
            subscription.current_period_end = period_end
            subscription.will_renew = True

            tenant.status = TenantStatus.ACTIVE
            if merchant_account_id:
                tenant.stripe_account_id = merchant_account_id

            await self.db.commit()
        except IntegrityError:
            # Another caller inserted the subscription first
            await self.db.rollback()
            await self.db.refresh(signup)
            if signup.state == SignupState.COMPLETED:
                log.info("activation_lost_race")
                return signup
            raise
        except Exception:
            await self.db.rollback()
            log.exception("activation_failed")
            raise

        await self.db.refresh(signup)
        log.info("tenant_activated")
        return signup

    async def refresh_from_provider(self, session_id: UUID) -> SignupState | None:
        """Polling fallback: activate from Stripe's current checkout state.

        Never raises. Every failure is logged and the state from before
        the attempt is returned.

        Returns:
            The session's state after the attempt, or None if it does not exist
        """
        state: SignupState | None = None
        log = logger.bind(signup_session_id=str(session_id))
        try:
            signup = await self.sessions.get_by_id(session_id)
            if not signup:
                log.info("signup_refresh_skipped", reason="not_found")
                return None
            state = SignupState(signup.state)
            if state == SignupState.COMPLETED:
                return state
            if not signup.tenant_id or not signup.checkout_session_id:
                log.info("signup_refresh_skipped", reason="no_checkout")
                return state

            checkout = await self.stripe.get_checkout_session(signup.checkout_session_id)
            if checkout is None or not checkout.is_paid:
                log.info(
                    "signup_refresh_skipped",
                    reason="not_paid",
                    checkout_session_id=signup.checkout_session_id,
                )
                return state
            if checkout.mode != "subscription" or not checkout.subscription_id:
                log.warning(
                    "signup_refresh_skipped",
                    reason="no_subscription",
                    checkout_session_id=checkout.id,
                )
                return state

            subscription = await self.stripe.get_subscription(checkout.subscription_id)
            if subscription is None:
                log.warning("signup_refresh_skipped", reason="subscription_missing")
                return state

            item = subscription.find_item(await self.plans.known_price_ids())
            if item is None:
                log.warning(
                    "signup_refresh_skipped",
                    reason="unknown_price",
                    subscription_id=subscription.id,
                )
                return state

            signup = await self.activate(
                subscription_id=subscription.id,
                customer_id=subscription.customer_id or checkout.customer_id or "",
                merchant_account_id=subscription.customer_account,
                period_start=item.current_period_start,
                period_end=item.current_period_end,
                checkout_session_id=checkout.id,
                signup_session_id=signup.id,
            )
            return SignupState(signup.state)
        except Exception:
            log.exception("signup_refresh_failed")
            await self.db.rollback()
            return state


# Type alias for dependency injection
SignupSvc = Annotated[SignupService, Depends(SignupService)]
