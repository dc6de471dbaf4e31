"""Find-or-create resolution of sheet rows against the remote entity store.

Every public method follows the same shape: look the entity up by its natural
key, create it when absent, refresh it in place when present. Each unit runs
under a key-scoped lock, so concurrent rows sharing a company key or customer
email cannot both take the create path. Transient store failures re-run the
whole unit, lookup included, so a retry never goes straight to a create.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from b2bsync.config.sync import SyncConfig

from .errors import AlreadyAssigned, CustomerAlreadyAssociated, TransientRemoteError
from .model import (
    Address,
    CompanyInput,
    ContactInput,
    Linked,
    LocationInput,
    Resolved,
    Unassignable,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Hashable

    from .model import Company, CompanyLocation, ContactResolution, ContactRole
    from .ports import RemoteEntityStore
    from .rows import SourceRow

log = getLogger(__name__)


class KeyedLocks:
    """In-process mutexes created on demand per key and dropped once idle."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._holders: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]


def company_input(row: SourceRow) -> CompanyInput:
    lines = [f"Company ID: {row.company_key}"]
    lines.extend(
        f"{label}: {value}"
        for label, value in (
            ("Price Level", row.price_level),
            ("Terms", row.payment_terms),
            ("Currency", row.currency_code),
            ("Sales Rep", row.sales_rep),
            ("Tax Details", row.tax_details),
            ("Primary Contact", row.primary_contact_email),
            ("Billing Contact", row.billing_contact_email),
            ("Billing Contact 2", row.billing_contact_email_2),
        )
        if value
    )
    if row.credit_hold:
        lines.append("CC Hold: yes")
    if row.ar_red_flag:
        lines.append("AR Red Flag: yes")
    return CompanyInput(
        name=row.company_name,
        external_id=row.company_key,
        note="\n".join(lines),
    )


def contact_input(row: SourceRow) -> ContactInput:
    return ContactInput(
        email=row.customer_email,
        first_name=row.customer_first_name,
        last_name=row.customer_last_name,
    )


def _country_code(country: str, fallback: str) -> str:
    # The sheet carries country names; only two-letter codes pass through.
    candidate = country.strip()
    if len(candidate) == 2 and candidate.isalpha():
        return candidate.upper()
    return fallback


def location_input(row: SourceRow, config: SyncConfig) -> LocationInput:
    if row.location_name:
        name = row.location_name
    elif row.address1:
        name = f"{row.company_name} - {row.address1}"
    else:
        name = f"{row.company_name} - {row.location_key}"
    note_lines = [f"Location ID: {row.location_key}"]
    if row.attention:
        note_lines.append(f"Attention: {row.attention}")
    return LocationInput(
        name=name,
        external_id=row.location_key,
        note="\n".join(note_lines),
        shipping_address=Address(
            address1=row.address1,
            address2=row.address2,
            city=row.city,
            zone_code=row.region,
            zip=row.postal_code,
            country_code=_country_code(row.country, config.default_country_code),
            recipient=row.attention,
        ),
    )


class EntityResolver:
    """Find-or-create for each entity type the pipeline needs."""

    def __init__(
        self,
        store: RemoteEntityStore,
        *,
        config: SyncConfig | None = None,
        locks: KeyedLocks | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._config = config or SyncConfig()
        self._locks = locks or KeyedLocks()
        self._sleep = sleep

    async def resolve_company(self, row: SourceRow) -> Resolved[Company]:
        data = company_input(row)
        # Set once a create was sent, so a retry after a lost response still
        # reports the entity as created by this row.
        create_sent = False

        async def find_or_create() -> Resolved[Company]:
            nonlocal create_sent
            company = await self._store.find_company_by_external_id(row.company_key)
            if company is None:
                create_sent = True
                created = await self._store.create_company(data)
                log.info("Created company %r (%s)", created.name, row.company_key)
                return Resolved(created, was_created=True)
            if create_sent:
                log.info(
                    "Company %r (%s) was created before a lost response",
                    company.name,
                    row.company_key,
                )
                return Resolved(company, was_created=True)
            log.debug("Found company %r (%s)", company.name, row.company_key)
            refreshed = await self._store.update_company(company.id, data)
            return Resolved(refreshed, was_created=False)

        async with self._locks.hold(("company", row.company_key)):
            return await self._with_retries(f"company {row.company_key}", find_or_create)

    async def resolve_customer_and_contact(
        self, company_id: str, row: SourceRow
    ) -> ContactResolution:
        email = row.customer_email
        create_sent = False
        associate_sent = False

        async def find_or_create() -> ContactResolution:
            nonlocal create_sent, associate_sent
            customer = await self._store.find_customer_by_email(email)
            if customer is None:
                create_sent = True
                contact = await self._store.create_company_contact(company_id, contact_input(row))
                log.info("Created customer %s as contact of company %s", email, company_id)
                return Linked(contact, customer_created=True, contact_created=True)

            contact = await self._store.find_existing_company_contact(company_id, customer.id)
            if contact is not None:
                if create_sent or associate_sent:
                    log.info(
                        "Contact %s of company %s was written before a lost response",
                        email,
                        company_id,
                    )
                else:
                    log.debug("Customer %s is already a contact of company %s", email, company_id)
                return Linked(
                    contact,
                    customer_created=create_sent,
                    contact_created=create_sent or associate_sent,
                )

            try:
                associate_sent = True
                contact = await self._store.associate_customer_with_company(
                    company_id, customer.id
                )
            except CustomerAlreadyAssociated as exc:
                log.warning(
                    "Customer %s already belongs to another company; "
                    "location assignment will be skipped (%s)",
                    email,
                    exc,
                )
                return Unassignable(customer, reason=str(exc))
            log.info("Linked existing customer %s to company %s", email, company_id)
            return Linked(contact, customer_created=False, contact_created=True)

        async with self._locks.hold(("customer", email)):
            return await self._with_retries(f"customer {email}", find_or_create)

    async def resolve_location(self, company_id: str, row: SourceRow) -> Resolved[CompanyLocation]:
        data = location_input(row, self._config)
        key = row.location_key
        create_sent = False

        async def find_or_create() -> Resolved[CompanyLocation]:
            nonlocal create_sent
            location = await self._store.find_location_by_external_id(company_id, key)
            if location is not None:
                if create_sent:
                    log.info(
                        "Location %r (%s) was created before a lost response", location.name, key
                    )
                    return Resolved(location, was_created=True)
                log.debug("Found location %r (%s)", location.name, key)
                refreshed = await self._store.update_company_location(location.id, data)
                return Resolved(refreshed, was_created=False)

            if key == self._config.first_location_key:
                default = await self._store.find_default_company_location(company_id)
                if default is not None:
                    adopted = await self._store.update_company_location(default.id, data)
                    log.info("Adopted default location of company %s as %r", company_id, key)
                    return Resolved(adopted, was_created=True)

            create_sent = True
            created = await self._store.create_company_location(company_id, data)
            log.info("Created location %r (%s)", created.name, key)
            return Resolved(created, was_created=True)

        async with self._locks.hold(("location", company_id, key)):
            return await self._with_retries(f"location {key}", find_or_create)

    async def resolve_role_assignment(
        self,
        contact_id: str,
        company_id: str,
        location_id: str,
        role: str,
    ) -> ContactRole | None:
        """Assign ``role`` at the location and return the role this call assigned.

        ``None`` means the contact was already assigned there.
        """

        role_name = self._role_name(role)
        assigned: ContactRole | None = None

        async def assign() -> ContactRole | None:
            nonlocal assigned
            if await self._store.is_assigned(contact_id, location_id):
                if assigned is not None:
                    log.info(
                        "Contact %s was assigned to location %s before a lost response",
                        contact_id,
                        location_id,
                    )
                    return assigned
                log.debug("Contact %s already assigned to location %s", contact_id, location_id)
                return None
            async with self._locks.hold(("role", company_id, role_name.casefold())):
                contact_role = await self._store.get_or_create_contact_role(company_id, role_name)
            assigned = contact_role
            try:
                assignment = await self._store.create_role_assignment(
                    contact_id, contact_role.id, location_id
                )
            except AlreadyAssigned as exc:
                # Assigned between the check and the create.
                log.info(
                    "Contact %s already assigned to location %s: %s", contact_id, location_id, exc
                )
                return None
            log.info("Assigned contact %s to location %s as %r", contact_id, location_id, role_name)
            return assignment.role

        async with self._locks.hold(("assignment", contact_id, location_id)):
            return await self._with_retries(f"assignment {contact_id}", assign)

    def _role_name(self, role: str) -> str:
        if role.upper() == self._config.default_role.upper():
            return self._config.contact_role_name
        return role.upper()

    async def _with_retries[T](self, label: str, unit: Callable[[], Awaitable[T]]) -> T:
        retry = self._config.retry
        attempt = 1
        while True:
            try:
                return await unit()
            except TransientRemoteError as exc:
                if attempt >= retry.attempts:
                    raise
                delay = retry.delay_for(attempt)
                log.warning(
                    "Transient failure resolving %s (attempt %s/%s): %s; retrying in %.1fs",
                    label,
                    attempt,
                    retry.attempts,
                    exc,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
