"""Shopify Admin GraphQL implementation of the remote entity store."""

from __future__ import annotations

import json
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from b2bsync.domain.errors import AlreadyAssigned, CustomerAlreadyAssociated, RemoteFailure

from . import queries
from .schema import (
    AssignAddressData,
    AssignCustomerData,
    AssignRoleData,
    CompanyContactRolesData,
    CompanyContactsData,
    CompanyCreateData,
    CompanyLocationsData,
    CompanyUpdateData,
    ContactCreateData,
    ContactRoleAssignmentsData,
    FindCompanyData,
    FindCustomerData,
    LocationCreateData,
    LocationUpdateData,
    RoleCreateData,
)
from .translator import (
    address_variables,
    company_variables,
    contact_variables,
    location_create_variables,
    location_update_variables,
    parse_company,
    parse_contact,
    parse_customer,
    parse_location,
    parse_role,
    parse_role_assignment,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from pydantic import BaseModel

    from b2bsync.domain.errors import ConflictError
    from b2bsync.domain.model import (
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

    from .client import ShopifyGraphQLClient
    from .schema import PageInfo, UserError

log = getLogger(__name__)

CUSTOMER_ASSOCIATED_MARKERS = ("already associated", "another company")
ASSIGNMENT_CONFLICT_MARKERS = ("already assigned", "already exists", "duplicate")


def search_term(field: str, value: str) -> str:
    """Build a Shopify search-syntax filter matching ``value`` exactly."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'{field}:"{escaped}"'


def raise_for_user_errors(
    operation: str,
    errors: Sequence[UserError],
    *,
    conflict: type[ConflictError] | None = None,
    markers: Sequence[str] = (),
) -> None:
    """Turn mutation ``userErrors`` into domain errors.

    A message containing one of ``markers`` raises ``conflict``; anything else
    is a ``RemoteFailure`` carrying the raw errors.
    """

    if not errors:
        return
    messages = [error.message for error in errors]
    if conflict is not None:
        for message in messages:
            lowered = message.lower()
            if any(marker in lowered for marker in markers):
                raise conflict(f"{operation}: {message}")
    detail = json.dumps([error.model_dump(exclude_none=True) for error in errors])
    log.error("%s rejected: %s", operation, detail)
    raise RemoteFailure(f"{operation} failed: {detail}")


def _matches_role(existing: str, wanted: str) -> bool:
    existing = existing.casefold()
    wanted = wanted.casefold()
    return existing == wanted or wanted in existing or existing in wanted


class ShopifyEntityStore:
    """Find and write B2B companies, contacts, locations and role assignments."""

    def __init__(self, client: ShopifyGraphQLClient) -> None:
        self._client = client

    # Companies

    async def find_company_by_external_id(self, external_id: str) -> Company | None:
        data = await self._client.fetch(
            FindCompanyData,
            queries.FIND_COMPANY,
            {"query": search_term("external_id", external_id)},
        )
        # Search is tokenized; only an exact external id counts as a match.
        for node in data.companies.nodes:
            if node.external_id == external_id:
                return parse_company(node)
        return None

    async def create_company(self, data: CompanyInput) -> Company:
        result = await self._client.fetch(
            CompanyCreateData,
            queries.CREATE_COMPANY,
            {"input": {"company": company_variables(data)}},
        )
        raise_for_user_errors("companyCreate", result.payload.user_errors)
        if result.payload.company is None:
            raise RemoteFailure("companyCreate returned no company")
        return parse_company(result.payload.company)

    async def update_company(self, company_id: str, data: CompanyInput) -> Company:
        result = await self._client.fetch(
            CompanyUpdateData,
            queries.UPDATE_COMPANY,
            {"companyId": company_id, "input": company_variables(data)},
        )
        raise_for_user_errors("companyUpdate", result.payload.user_errors)
        if result.payload.company is None:
            raise RemoteFailure(f"companyUpdate returned no company for {company_id}")
        return parse_company(result.payload.company)

    # Customers and contacts

    async def find_customer_by_email(self, email: str) -> Customer | None:
        data = await self._client.fetch(
            FindCustomerData,
            queries.FIND_CUSTOMER,
            {"query": search_term("email", email)},
        )
        wanted = email.lower()
        for node in data.customers.nodes:
            if (node.email or "").lower() == wanted:
                return parse_customer(node)
        return None

    async def create_company_contact(self, company_id: str, data: ContactInput) -> CompanyContact:
        result = await self._client.fetch(
            ContactCreateData,
            queries.CREATE_COMPANY_CONTACT,
            {"companyId": company_id, "input": contact_variables(data)},
        )
        raise_for_user_errors("companyContactCreate", result.payload.user_errors)
        if result.payload.company_contact is None:
            raise RemoteFailure("companyContactCreate returned no contact")
        return parse_contact(result.payload.company_contact, company_id=company_id)

    async def associate_customer_with_company(
        self, company_id: str, customer_id: str
    ) -> CompanyContact:
        result = await self._client.fetch(
            AssignCustomerData,
            queries.ASSIGN_CUSTOMER_AS_CONTACT,
            {"companyId": company_id, "customerId": customer_id},
        )
        raise_for_user_errors(
            "companyAssignCustomerAsContact",
            result.payload.user_errors,
            conflict=CustomerAlreadyAssociated,
            markers=CUSTOMER_ASSOCIATED_MARKERS,
        )
        if result.payload.company_contact is None:
            raise RemoteFailure("companyAssignCustomerAsContact returned no contact")
        return parse_contact(result.payload.company_contact, company_id=company_id)

    async def find_existing_company_contact(
        self, company_id: str, customer_id: str
    ) -> CompanyContact | None:
        contacts = await self._collect(
            CompanyContactsData,
            queries.COMPANY_CONTACTS,
            {"companyId": company_id},
            lambda data: (
                (data.company.contacts.nodes, data.company.contacts.page_info)
                if data.company
                else None
            ),
        )
        for node in contacts:
            if node.customer.id == customer_id:
                return parse_contact(node, company_id=company_id)
        return None

    # Locations

    async def _list_locations(self, company_id: str) -> list[CompanyLocation]:
        nodes = await self._collect(
            CompanyLocationsData,
            queries.COMPANY_LOCATIONS,
            {"companyId": company_id},
            lambda data: (
                (data.company.locations.nodes, data.company.locations.page_info)
                if data.company
                else None
            ),
        )
        return [parse_location(node, company_id=company_id) for node in nodes]

    async def find_location_by_external_id(
        self, company_id: str, external_id: str
    ) -> CompanyLocation | None:
        for location in await self._list_locations(company_id):
            if location.external_id == external_id:
                return location
        return None

    async def find_default_company_location(self, company_id: str) -> CompanyLocation | None:
        for location in await self._list_locations(company_id):
            if location.is_default:
                return location
        return None

    async def create_company_location(
        self, company_id: str, data: LocationInput
    ) -> CompanyLocation:
        result = await self._client.fetch(
            LocationCreateData,
            queries.CREATE_COMPANY_LOCATION,
            {"companyId": company_id, "input": location_create_variables(data)},
        )
        raise_for_user_errors("companyLocationCreate", result.payload.user_errors)
        if result.payload.company_location is None:
            raise RemoteFailure("companyLocationCreate returned no location")
        return parse_location(result.payload.company_location, company_id=company_id)

    async def update_company_location(
        self, location_id: str, data: LocationInput
    ) -> CompanyLocation:
        result = await self._client.fetch(
            LocationUpdateData,
            queries.UPDATE_COMPANY_LOCATION,
            {"companyLocationId": location_id, "input": location_update_variables(data)},
        )
        raise_for_user_errors("companyLocationUpdate", result.payload.user_errors)
        if result.payload.company_location is None:
            raise RemoteFailure(f"companyLocationUpdate returned no location for {location_id}")

        address_types = ["SHIPPING", "BILLING"] if data.billing_same_as_shipping else ["SHIPPING"]
        assigned = await self._client.fetch(
            AssignAddressData,
            queries.ASSIGN_LOCATION_ADDRESS,
            {
                "locationId": location_id,
                "address": address_variables(data.shipping_address),
                "addressTypes": address_types,
            },
        )
        raise_for_user_errors("companyLocationAssignAddress", assigned.payload.user_errors)

        location = parse_location(result.payload.company_location)
        return replace(location, shipping_address=data.shipping_address)

    # Roles

    async def is_assigned(self, contact_id: str, location_id: str) -> bool:
        assignments = await self._collect(
            ContactRoleAssignmentsData,
            queries.CONTACT_ROLE_ASSIGNMENTS,
            {"companyContactId": contact_id},
            lambda data: (
                (
                    data.company_contact.role_assignments.nodes,
                    data.company_contact.role_assignments.page_info,
                )
                if data.company_contact
                else None
            ),
        )
        return any(node.company_location.id == location_id for node in assignments)

    async def create_role_assignment(
        self, contact_id: str, role_id: str, location_id: str
    ) -> RoleAssignment:
        result = await self._client.fetch(
            AssignRoleData,
            queries.ASSIGN_CONTACT_ROLE,
            {
                "companyContactId": contact_id,
                "companyContactRoleId": role_id,
                "companyLocationId": location_id,
            },
        )
        raise_for_user_errors(
            "companyContactAssignRole",
            result.payload.user_errors,
            conflict=AlreadyAssigned,
            markers=ASSIGNMENT_CONFLICT_MARKERS,
        )
        if result.payload.assignment is None:
            raise RemoteFailure("companyContactAssignRole returned no assignment")
        return parse_role_assignment(result.payload.assignment, contact_id=contact_id)

    async def get_or_create_contact_role(self, company_id: str, role_name: str) -> ContactRole:
        data = await self._client.fetch(
            CompanyContactRolesData,
            queries.COMPANY_CONTACT_ROLES,
            {"companyId": company_id},
        )
        if data.company is None:
            raise RemoteFailure(f"Company {company_id} not found while listing contact roles")
        roles = data.company.contact_roles.nodes
        existing = next(
            (role for role in roles if role.name.casefold() == role_name.casefold()), None
        ) or next((role for role in roles if _matches_role(role.name, role_name)), None)
        if existing is not None:
            log.debug("Using contact role %r for %r", existing.name, role_name)
            return parse_role(existing)

        result = await self._client.fetch(
            RoleCreateData,
            queries.CREATE_CONTACT_ROLE,
            {"companyId": company_id, "input": {"name": role_name}},
        )
        raise_for_user_errors("companyContactRoleCreate", result.payload.user_errors)
        if result.payload.company_contact_role is None:
            raise RemoteFailure("companyContactRoleCreate returned no role")
        log.info("Created contact role %r for company %s", role_name, company_id)
        return parse_role(result.payload.company_contact_role)

    async def _collect[TData: BaseModel, TNode](
        self,
        model: type[TData],
        query: str,
        variables: dict[str, object],
        page_of: Callable[[TData], tuple[list[TNode], PageInfo] | None],
    ) -> list[TNode]:
        """Follow ``pageInfo`` cursors and return every node of the connection."""

        nodes: list[TNode] = []
        after: str | None = None
        while True:
            data = await self._client.fetch(model, query, {**variables, "after": after})
            page = page_of(data)
            if page is None:
                raise RemoteFailure(f"{model.__name__}: parent entity not found {variables}")
            page_nodes, info = page
            nodes.extend(page_nodes)
            if not info.has_next_page or not info.end_cursor:
                return nodes
            after = info.end_cursor
