"""GraphQL documents for the Shopify Admin API (B2B companies)."""

from __future__ import annotations

COMPANY_FIELDS = """
fragment CompanyFields on Company {
  id
  name
  externalId
  note
  createdAt
  updatedAt
}
"""

CUSTOMER_FIELDS = """
fragment CustomerFields on Customer {
  id
  email
  firstName
  lastName
  createdAt
  updatedAt
}
"""

CONTACT_FIELDS = (
    """
fragment ContactFields on CompanyContact {
  id
  company { id }
  customer { ...CustomerFields }
}
"""
    + CUSTOMER_FIELDS
)

LOCATION_FIELDS = """
fragment LocationFields on CompanyLocation {
  id
  name
  externalId
  company { id }
  shippingAddress {
    address1
    address2
    city
    zoneCode
    zip
    countryCode
    recipient
  }
  createdAt
  updatedAt
}
"""

USER_ERRORS = "userErrors { field message code }"

FIND_COMPANY = (
    """
query findCompany($query: String!) {
  companies(first: 1, query: $query) {
    nodes { ...CompanyFields }
  }
}
"""
    + COMPANY_FIELDS
)

CREATE_COMPANY = (
    f"""
mutation companyCreate($input: CompanyCreateInput!) {{
  companyCreate(input: $input) {{
    company {{ ...CompanyFields }}
    {USER_ERRORS}
  }}
}}
"""
    + COMPANY_FIELDS
)

UPDATE_COMPANY = (
    f"""
mutation companyUpdate($companyId: ID!, $input: CompanyInput!) {{
  companyUpdate(companyId: $companyId, input: $input) {{
    company {{ ...CompanyFields }}
    {USER_ERRORS}
  }}
}}
"""
    + COMPANY_FIELDS
)

FIND_CUSTOMER = (
    """
query findCustomer($query: String!) {
  customers(first: 1, query: $query) {
    nodes { ...CustomerFields }
  }
}
"""
    + CUSTOMER_FIELDS
)

CREATE_COMPANY_CONTACT = (
    f"""
mutation companyContactCreate($companyId: ID!, $input: CompanyContactInput!) {{
  companyContactCreate(companyId: $companyId, input: $input) {{
    companyContact {{ ...ContactFields }}
    {USER_ERRORS}
  }}
}}
"""
    + CONTACT_FIELDS
)

ASSIGN_CUSTOMER_AS_CONTACT = (
    f"""
mutation companyAssignCustomerAsContact($companyId: ID!, $customerId: ID!) {{
  companyAssignCustomerAsContact(companyId: $companyId, customerId: $customerId) {{
    companyContact {{ ...ContactFields }}
    {USER_ERRORS}
  }}
}}
"""
    + CONTACT_FIELDS
)

COMPANY_CONTACTS = (
    """
query companyContacts($companyId: ID!, $after: String) {
  company(id: $companyId) {
    contacts(first: 250, after: $after) {
      nodes { ...ContactFields }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""
    + CONTACT_FIELDS
)

COMPANY_LOCATIONS = (
    """
query companyLocations($companyId: ID!, $after: String) {
  company(id: $companyId) {
    locations(first: 100, after: $after) {
      nodes { ...LocationFields }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""
    + LOCATION_FIELDS
)

CREATE_COMPANY_LOCATION = (
    f"""
mutation companyLocationCreate($companyId: ID!, $input: CompanyLocationInput!) {{
  companyLocationCreate(companyId: $companyId, input: $input) {{
    companyLocation {{ ...LocationFields }}
    {USER_ERRORS}
  }}
}}
"""
    + LOCATION_FIELDS
)

UPDATE_COMPANY_LOCATION = (
    f"""
mutation companyLocationUpdate($companyLocationId: ID!, $input: CompanyLocationUpdateInput!) {{
  companyLocationUpdate(companyLocationId: $companyLocationId, input: $input) {{
    companyLocation {{ ...LocationFields }}
    {USER_ERRORS}
  }}
}}
"""
    + LOCATION_FIELDS
)

ASSIGN_LOCATION_ADDRESS = f"""
mutation companyLocationAssignAddress(
  $locationId: ID!
  $address: CompanyAddressInput!
  $addressTypes: [CompanyAddressType!]!
) {{
  companyLocationAssignAddress(
    locationId: $locationId
    address: $address
    addressTypes: $addressTypes
  ) {{
    addresses {{ id }}
    {USER_ERRORS}
  }}
}}
"""

CONTACT_ROLE_ASSIGNMENTS = """
query contactRoleAssignments($companyContactId: ID!, $after: String) {
  companyContact(id: $companyContactId) {
    roleAssignments(first: 50, after: $after) {
      nodes {
        id
        companyLocation { id }
        role { id name }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

COMPANY_CONTACT_ROLES = """
query companyContactRoles($companyId: ID!) {
  company(id: $companyId) {
    contactRoles(first: 50) {
      nodes { id name }
    }
  }
}
"""

CREATE_CONTACT_ROLE = f"""
mutation companyContactRoleCreate($companyId: ID!, $input: CompanyContactRoleInput!) {{
  companyContactRoleCreate(companyId: $companyId, input: $input) {{
    companyContactRole {{ id name }}
    {USER_ERRORS}
  }}
}}
"""

ASSIGN_CONTACT_ROLE = f"""
mutation companyContactAssignRole(
  $companyContactId: ID!
  $companyContactRoleId: ID!
  $companyLocationId: ID!
) {{
  companyContactAssignRole(
    companyContactId: $companyContactId
    companyContactRoleId: $companyContactRoleId
    companyLocationId: $companyLocationId
  ) {{
    companyContactRoleAssignment {{
      id
      companyLocation {{ id }}
      role {{ id name }}
    }}
    {USER_ERRORS}
  }}
}}
"""
