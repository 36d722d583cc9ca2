"""Repository layer for the business console.

Thin per-entity CRUD over the document store. Each module translates between
stored documents and the pydantic entities in schemas/ and owns field-level
defaulting (ids, audit timestamps, derived names):
- organisations: create, get, require, list_all, update, delete, search
- contacts: create, get, require, list_all, update, delete, search, set_links
- leads: create, get, require, list_all, update, delete, search,
         by_organisation, by_contact
- websites: create, get, require, list_all, update, delete, search,
            by_organisation, with_organisations
"""
