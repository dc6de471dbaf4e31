"""Pydantic models describing the Shopify Admin GraphQL payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _none_to_blank(value: object) -> object:
    return "" if value is None else value


class ShopifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorExtensions(ShopifyBaseModel):
    code: str | None = None


class GraphQLError(ShopifyBaseModel):
    message: str
    extensions: ErrorExtensions | None = None

    @property
    def code(self) -> str | None:
        return self.extensions.code if self.extensions else None


class GraphQLResponse(ShopifyBaseModel):
    data: dict[str, object] | None = None
    errors: list[GraphQLError] = Field(default_factory=list)


class UserError(ShopifyBaseModel):
    field: list[str] | None = None
    message: str
    code: str | None = None


class PageInfo(ShopifyBaseModel):
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class IdRef(ShopifyBaseModel):
    id: str


class CompanyNode(ShopifyBaseModel):
    id: str
    name: str
    external_id: str | None = Field(default=None, alias="externalId")
    note: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class CustomerNode(ShopifyBaseModel):
    id: str
    email: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class ContactNode(ShopifyBaseModel):
    id: str
    company: IdRef | None = None
    customer: CustomerNode


class AddressNode(ShopifyBaseModel):
    address1: str = ""
    address2: str = ""
    city: str = ""
    zone_code: str = Field(default="", alias="zoneCode")
    zip: str = ""
    country_code: str = Field(default="", alias="countryCode")
    recipient: str = ""

    _blank = field_validator(
        "address1",
        "address2",
        "city",
        "zone_code",
        "zip",
        "country_code",
        "recipient",
        mode="before",
    )(_none_to_blank)


class LocationNode(ShopifyBaseModel):
    id: str
    name: str
    external_id: str | None = Field(default=None, alias="externalId")
    company: IdRef | None = None
    shipping_address: AddressNode | None = Field(default=None, alias="shippingAddress")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class RoleNode(ShopifyBaseModel):
    id: str
    name: str


class RoleAssignmentNode(ShopifyBaseModel):
    id: str
    company_location: IdRef = Field(alias="companyLocation")
    role: RoleNode


# Queries


class CompanyNodes(ShopifyBaseModel):
    nodes: list[CompanyNode] = Field(default_factory=list)


class FindCompanyData(ShopifyBaseModel):
    companies: CompanyNodes


class CustomerNodes(ShopifyBaseModel):
    nodes: list[CustomerNode] = Field(default_factory=list)


class FindCustomerData(ShopifyBaseModel):
    customers: CustomerNodes


class ContactPage(ShopifyBaseModel):
    nodes: list[ContactNode] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class CompanyContacts(ShopifyBaseModel):
    contacts: ContactPage


class CompanyContactsData(ShopifyBaseModel):
    company: CompanyContacts | None = None


class LocationPage(ShopifyBaseModel):
    nodes: list[LocationNode] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class CompanyLocations(ShopifyBaseModel):
    locations: LocationPage


class CompanyLocationsData(ShopifyBaseModel):
    company: CompanyLocations | None = None


class RoleAssignmentPage(ShopifyBaseModel):
    nodes: list[RoleAssignmentNode] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class ContactRoleAssignments(ShopifyBaseModel):
    role_assignments: RoleAssignmentPage = Field(alias="roleAssignments")


class ContactRoleAssignmentsData(ShopifyBaseModel):
    company_contact: ContactRoleAssignments | None = Field(default=None, alias="companyContact")


class RoleNodes(ShopifyBaseModel):
    nodes: list[RoleNode] = Field(default_factory=list)


class CompanyContactRoles(ShopifyBaseModel):
    contact_roles: RoleNodes = Field(alias="contactRoles")


class CompanyContactRolesData(ShopifyBaseModel):
    company: CompanyContactRoles | None = None


# Mutations


class MutationPayload(ShopifyBaseModel):
    user_errors: list[UserError] = Field(default_factory=list, alias="userErrors")


class CompanyPayload(MutationPayload):
    company: CompanyNode | None = None


class CompanyCreateData(ShopifyBaseModel):
    payload: CompanyPayload = Field(alias="companyCreate")


class CompanyUpdateData(ShopifyBaseModel):
    payload: CompanyPayload = Field(alias="companyUpdate")


class ContactPayload(MutationPayload):
    company_contact: ContactNode | None = Field(default=None, alias="companyContact")


class ContactCreateData(ShopifyBaseModel):
    payload: ContactPayload = Field(alias="companyContactCreate")


class AssignCustomerData(ShopifyBaseModel):
    payload: ContactPayload = Field(alias="companyAssignCustomerAsContact")


class LocationPayload(MutationPayload):
    company_location: LocationNode | None = Field(default=None, alias="companyLocation")


class LocationCreateData(ShopifyBaseModel):
    payload: LocationPayload = Field(alias="companyLocationCreate")


class LocationUpdateData(ShopifyBaseModel):
    payload: LocationPayload = Field(alias="companyLocationUpdate")


class AssignAddressData(ShopifyBaseModel):
    payload: MutationPayload = Field(alias="companyLocationAssignAddress")


class RolePayload(MutationPayload):
    company_contact_role: RoleNode | None = Field(default=None, alias="companyContactRole")


class RoleCreateData(ShopifyBaseModel):
    payload: RolePayload = Field(alias="companyContactRoleCreate")


class RoleAssignmentPayload(MutationPayload):
    assignment: RoleAssignmentNode | None = Field(
        default=None, alias="companyContactRoleAssignment"
    )


class AssignRoleData(ShopifyBaseModel):
    payload: RoleAssignmentPayload = Field(alias="companyContactAssignRole")
