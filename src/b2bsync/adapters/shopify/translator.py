"""Translate Shopify payloads into domain entities and domain inputs into variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from b2bsync.domain.model import (
    Address,
    Company,
    CompanyContact,
    CompanyLocation,
    ContactRole,
    Customer,
    RoleAssignment,
)

if TYPE_CHECKING:
    from b2bsync.domain.model import CompanyInput, ContactInput, LocationInput

    from .schema import (
        AddressNode,
        CompanyNode,
        ContactNode,
        CustomerNode,
        LocationNode,
        RoleAssignmentNode,
        RoleNode,
    )


def parse_company(node: CompanyNode) -> Company:
    return Company(
        id=node.id,
        name=node.name,
        external_id=node.external_id,
        note=node.note,
        created_at=node.created_at,
        updated_at=node.updated_at,
    )


def parse_customer(node: CustomerNode) -> Customer:
    return Customer(
        id=node.id,
        email=(node.email or "").lower(),
        first_name=node.first_name,
        last_name=node.last_name,
        created_at=node.created_at,
        updated_at=node.updated_at,
    )


def parse_contact(node: ContactNode, *, company_id: str) -> CompanyContact:
    return CompanyContact(
        id=node.id,
        company_id=node.company.id if node.company else company_id,
        customer=parse_customer(node.customer),
    )


def _parse_address(node: AddressNode | None) -> Address | None:
    if node is None:
        return None
    return Address(
        address1=node.address1,
        address2=node.address2,
        city=node.city,
        zone_code=node.zone_code,
        zip=node.zip,
        country_code=node.country_code,
        recipient=node.recipient,
    )


def parse_location(node: LocationNode, *, company_id: str = "") -> CompanyLocation:
    return CompanyLocation(
        id=node.id,
        company_id=node.company.id if node.company else company_id,
        name=node.name,
        external_id=node.external_id,
        shipping_address=_parse_address(node.shipping_address),
        created_at=node.created_at,
        updated_at=node.updated_at,
    )


def parse_role(node: RoleNode) -> ContactRole:
    return ContactRole(id=node.id, name=node.name)


def parse_role_assignment(node: RoleAssignmentNode, *, contact_id: str) -> RoleAssignment:
    return RoleAssignment(
        id=node.id,
        contact_id=contact_id,
        location_id=node.company_location.id,
        role=parse_role(node.role),
    )


def company_variables(data: CompanyInput) -> dict[str, object]:
    return {"name": data.name, "externalId": data.external_id, "note": data.note}


def contact_variables(data: ContactInput) -> dict[str, object]:
    return {
        "email": data.email,
        "firstName": data.first_name,
        "lastName": data.last_name,
        "locale": data.locale,
    }


def address_variables(address: Address) -> dict[str, object]:
    values = {
        "address1": address.address1,
        "address2": address.address2,
        "city": address.city,
        "zoneCode": address.zone_code,
        "zip": address.zip,
        "countryCode": address.country_code,
        "recipient": address.recipient,
    }
    # Shopify rejects empty strings for enum-typed address fields.
    return {key: value for key, value in values.items() if value}


def location_create_variables(data: LocationInput) -> dict[str, object]:
    return {
        "name": data.name,
        "externalId": data.external_id,
        "note": data.note,
        "shippingAddress": address_variables(data.shipping_address),
        "billingSameAsShipping": data.billing_same_as_shipping,
    }


def location_update_variables(data: LocationInput) -> dict[str, object]:
    return {"name": data.name, "externalId": data.external_id, "note": data.note}
