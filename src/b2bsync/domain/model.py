"""Remote entities as seen by the reconciliation core.

These are snapshots of what the entity store returned for one call; the core
never keeps them beyond the row that fetched them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class Company:
    id: str
    name: str
    external_id: str | None
    note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Customer:
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class CompanyContact:
    id: str
    company_id: str
    customer: Customer


@dataclass(frozen=True, slots=True)
class Address:
    address1: str = ""
    address2: str = ""
    city: str = ""
    zone_code: str = ""
    zip: str = ""
    country_code: str = ""
    recipient: str = ""


@dataclass(frozen=True, slots=True)
class CompanyLocation:
    id: str
    company_id: str
    name: str
    external_id: str | None
    shipping_address: Address | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_default(self) -> bool:
        """The location Shopify generates for a new company carries no external id."""

        return not self.external_id


@dataclass(frozen=True, slots=True)
class ContactRole:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    id: str
    contact_id: str
    location_id: str
    role: ContactRole


@dataclass(frozen=True, slots=True)
class CompanyInput:
    """Fields written on create and re-applied on every refresh."""

    name: str
    external_id: str
    note: str


@dataclass(frozen=True, slots=True)
class ContactInput:
    email: str
    first_name: str
    last_name: str
    locale: str = "en"


@dataclass(frozen=True, slots=True)
class LocationInput:
    name: str
    external_id: str
    note: str
    shipping_address: Address
    billing_same_as_shipping: bool = True


@dataclass(frozen=True, slots=True)
class Resolved[TEntity]:
    """A find-or-create result."""

    entity: TEntity
    was_created: bool


@dataclass(frozen=True, slots=True)
class Linked:
    """The customer is a contact of the row's company and can be assigned.

    ``customer_created`` is set when the customer and contact were created
    together; ``contact_created`` also covers an existing customer being
    associated with the company for the first time.
    """

    contact: CompanyContact
    customer_created: bool
    contact_created: bool

    @property
    def customer(self) -> Customer:
        return self.contact.customer


@dataclass(frozen=True, slots=True)
class Unassignable:
    """The customer already belongs to another company; assignment is skipped."""

    customer: Customer
    reason: str

    @property
    def customer_created(self) -> bool:
        return False

    @property
    def contact_created(self) -> bool:
        return False


type ContactResolution = Linked | Unassignable
