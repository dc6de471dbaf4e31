"""Ports the reconciliation core consumes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .model import (
        Company,
        CompanyContact,
        CompanyInput,
        CompanyLocation,
        ContactInput,
        ContactRole,
        Customer,
        LocationInput,
        RoleAssignment,
    )

type RawRecord = Mapping[str, str | None]


@runtime_checkable
class RecordSource(Protocol):
    """Callable port yielding raw records keyed by canonical field name."""

    def __call__(self) -> list[RawRecord]: ...


@runtime_checkable
class RemoteEntityStore(Protocol):
    """System of record for companies, customers, contacts, locations and roles.

    ``find_*`` return ``None`` when nothing matches. Writes raise
    ``ConflictError`` subclasses for the known business conflicts and
    ``RemoteFailure`` for everything else.
    """

    async def find_company_by_external_id(self, external_id: str) -> Company | None: ...

    async def create_company(self, data: CompanyInput) -> Company: ...

    async def update_company(self, company_id: str, data: CompanyInput) -> Company: ...

    async def find_customer_by_email(self, email: str) -> Customer | None: ...

    async def create_company_contact(
        self, company_id: str, data: ContactInput
    ) -> CompanyContact: ...

    async def associate_customer_with_company(
        self, company_id: str, customer_id: str
    ) -> CompanyContact: ...

    async def find_existing_company_contact(
        self, company_id: str, customer_id: str
    ) -> CompanyContact | None: ...

    async def find_location_by_external_id(
        self, company_id: str, external_id: str
    ) -> CompanyLocation | None: ...

    async def find_default_company_location(self, company_id: str) -> CompanyLocation | None: ...

    async def create_company_location(
        self, company_id: str, data: LocationInput
    ) -> CompanyLocation: ...

    async def update_company_location(
        self, location_id: str, data: LocationInput
    ) -> CompanyLocation: ...

    async def is_assigned(self, contact_id: str, location_id: str) -> bool: ...

    async def create_role_assignment(
        self, contact_id: str, role_id: str, location_id: str
    ) -> RoleAssignment: ...

    async def get_or_create_contact_role(self, company_id: str, role_name: str) -> ContactRole: ...
