"""Connected-account onboarding and status lookups.

Onboarding is create-or-reuse: a company gets at most one connected account.
The first request provisions it under a per-company lock and records it with
a set-if-absent write; later requests only mint a fresh onboarding link.
"""

from urllib.parse import urlencode

from bookpay.common.errors import NotFound, require
from bookpay.common.logging import company_id_ctx, logger
from bookpay.common.metrics import connected_accounts_created_total, onboarding_races_lost_total
from bookpay.services.gateway.directory import AccountDirectory
from bookpay.services.gateway.processor import PaymentProcessor
from bookpay.services.gateway.schemas import AccountStatus, OnboardingLink


class OnboardingService:
    """Owns the company -> connected account lifecycle."""

    def __init__(
        self,
        directory: AccountDirectory,
        processor: PaymentProcessor,
        public_base_url: str,
        service_name: str = "bookings-gateway",
    ) -> None:
        self.directory = directory
        self.processor = processor
        self.public_base_url = public_base_url.rstrip("/")
        self.service_name = service_name

    def callback_urls(self, company_id: str) -> tuple[str, str]:
        """Return (refresh_url, return_url) for the hosted onboarding flow."""

        query = urlencode({"companyUUID": company_id})
        return (
            f"{self.public_base_url}/stripe/connect/refresh?{query}",
            f"{self.public_base_url}/stripe/connect/success?{query}",
        )

    async def _provision(self, company_id: str) -> tuple[str, bool]:
        async with self.directory.lock(company_id):
            existing = await self.directory.get(company_id)
            if existing:
                return existing, False

            account_id = await self.processor.create_connected_account(company_id)
            connected_accounts_created_total.labels(service=self.service_name).inc()
            if await self.directory.set_if_absent(company_id, account_id):
                logger.info("connected account created account_id=%s", account_id)
                return account_id, True

            onboarding_races_lost_total.labels(service=self.service_name).inc()
            winner = await self.directory.get(company_id)
            logger.warning(
                "connected account orphaned by concurrent onboarding orphan=%s kept=%s",
                account_id,
                winner,
            )
            return winner or account_id, False

    async def resolve_account(self, company_id: str) -> tuple[str, bool]:
        """Return (account_id, created) for the company, provisioning on first use."""

        existing = await self.directory.get(company_id)
        if existing:
            return existing, False
        return await self._provision(company_id)

    async def start_onboarding(self, company_id: str | None) -> OnboardingLink:
        require(companyUUID=company_id)
        company_id_ctx.set(company_id)

        account_id, created = await self.resolve_account(company_id)
        refresh_url, return_url = self.callback_urls(company_id)
        url = await self.processor.create_account_link(
            account_id,
            refresh_url=refresh_url,
            return_url=return_url,
        )
        logger.info("onboarding link issued account_id=%s created=%s", account_id, created)
        return OnboardingLink(url=url, account_id=account_id, created=created)

    async def get_status(self, company_id: str | None) -> AccountStatus:
        """Live account status; never cached."""

        require(companyUUID=company_id)
        company_id_ctx.set(company_id)

        account_id = await self.directory.get(company_id)
        if not account_id:
            raise NotFound(f"no connected account linked for company {company_id}")

        account = await self.processor.retrieve_account(account_id)
        return AccountStatus(
            account_id=account.get("id", account_id),
            email=account.get("email"),
            business_type=account.get("business_type"),
            capabilities=account.get("capabilities"),
            charges_enabled=account.get("charges_enabled"),
            payouts_enabled=account.get("payouts_enabled"),
            requirements=account.get("requirements"),
        )
