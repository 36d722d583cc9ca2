"""Business console: operator commands for the relationship layer.

Usage:
  # Create the documents table (development; use Alembic in production)
  python console.py init-db

  # Link a contact to an organisation as its primary contact
  python console.py link-contact --contact-id c1 --organisation-id o1 --role CTO --primary

  # Attach a lead to an organisation, then to a contact
  python console.py link-lead-org --lead-id l1 --organisation-id o1 --organisation-name "Acme Corp"
  python console.py link-lead-contact --lead-id l1 --contact-id c1

  # Inspect and audit
  python console.py --json show-lead --lead-id l1
  python console.py audit
  python console.py resync-org-name --organisation-id o1
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Optional, Sequence

import db.repositories.contacts as contact_repo
import db.repositories.leads as lead_repo
from db.connection import dispose_engine
from db.errors import NotFoundError
from db.store import DocumentStore, SqlDocumentStore
from relationships import (
    contacts_for_lead,
    link_contact_to_organisation,
    link_lead_to_contact,
    link_lead_to_organisation,
    organisations_for_contact,
    unlink_contact_from_organisation,
    unlink_lead_from_contact,
    unlink_lead_from_organisation,
)
from relationships.consistency import (
    find_dangling_references,
    find_primary_conflicts,
    resync_organisation_name,
)

logger = logging.getLogger(__name__)


def _emit(payload: Any, as_json: bool, lines: Sequence[str]) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, default=str))
    else:
        for line in lines:
            print(line)


async def _show_lead(store: DocumentStore, lead_id: str, as_json: bool) -> None:
    lead = await lead_repo.require(store, lead_id)
    contacts = await contacts_for_lead(store, lead_id)
    lines = [
        f"Lead {lead.id}: {lead.contact_person.full_name} [{lead.status}]",
        f"  Organisation: {lead.organisation_name or '-'} ({lead.organisation_id or 'none'})",
        f"  Contacts ({len(lead.contact_ids)}):",
    ]
    lines += [f"    {c.id}  {c.full_name}  {c.email or ''}".rstrip() for c in contacts]
    missing = [cid for cid in lead.contact_ids if cid not in {c.id for c in contacts}]
    lines += [f"    {cid}  (missing)" for cid in missing]
    _emit(
        {
            "lead": lead.model_dump(mode="json"),
            "contacts": [c.model_dump(mode="json") for c in contacts],
        },
        as_json,
        lines,
    )


async def _show_contact(store: DocumentStore, contact_id: str, as_json: bool) -> None:
    contact = await contact_repo.require(store, contact_id)
    links = await organisations_for_contact(store, contact_id)
    leads = await lead_repo.by_contact(store, contact_id)
    lines = [f"Contact {contact.id}: {contact.full_name} {contact.email or ''}".rstrip()]
    lines.append(f"  Organisations ({len(links)}):")
    for link in links:
        flag = " *primary*" if link.is_primary else ""
        lines.append(
            f"    [{link.priority}] {link.organisation_name or link.organisation_id}"
            f" role={link.role or '-'} rel={link.relationship_id}{flag}"
        )
    lines.append(f"  Leads ({len(leads)}): {', '.join(l.id for l in leads) or '-'}")
    _emit(
        {
            "contact": contact.model_dump(mode="json"),
            "leads": [l.id for l in leads],
        },
        as_json,
        lines,
    )


async def _audit(store: DocumentStore, as_json: bool) -> None:
    dangling = await find_dangling_references(store)
    conflicts = await find_primary_conflicts(store)
    lines = [f"Dangling references: {len(dangling)}"]
    lines += [
        f"  {d.source_collection}/{d.source_id}.{d.field} -> {d.target_collection}/{d.target_id}"
        for d in dangling
    ]
    lines.append(f"Organisations with more than one primary contact: {len(conflicts)}")
    lines += [f"  {org_id}: {', '.join(ids)}" for org_id, ids in conflicts.items()]
    _emit(
        {
            "dangling_references": [asdict(d) for d in dangling],
            "primary_conflicts": conflicts,
        },
        as_json,
        lines,
    )


async def run_command(args: argparse.Namespace, store: DocumentStore) -> int:
    """Execute one parsed command against store. Returns the exit code."""
    try:
        if args.command == "init-db":
            await store.create_all()
            print("documents table ready")

        elif args.command == "link-contact":
            await link_contact_to_organisation(
                store,
                args.contact_id,
                args.organisation_id,
                role=args.role,
                is_primary=args.primary,
                priority=args.priority,
                organisation_name=args.organisation_name,
            )
            print(f"Linked contact {args.contact_id} to organisation {args.organisation_id}")

        elif args.command == "unlink-contact":
            await unlink_contact_from_organisation(store, args.relationship_id, args.contact_id)
            print(f"Removed relationship {args.relationship_id}")

        elif args.command == "link-lead-org":
            await link_lead_to_organisation(
                store, args.lead_id, args.organisation_id, args.organisation_name
            )
            print(f"Linked lead {args.lead_id} to organisation {args.organisation_id}")

        elif args.command == "unlink-lead-org":
            await unlink_lead_from_organisation(store, args.lead_id)
            print(f"Cleared organisation on lead {args.lead_id}")

        elif args.command == "link-lead-contact":
            await link_lead_to_contact(store, args.lead_id, args.contact_id)
            print(f"Linked lead {args.lead_id} to contact {args.contact_id}")

        elif args.command == "unlink-lead-contact":
            await unlink_lead_from_contact(store, args.lead_id, args.contact_id)
            print(f"Unlinked contact {args.contact_id} from lead {args.lead_id}")

        elif args.command == "show-lead":
            await _show_lead(store, args.lead_id, args.json)

        elif args.command == "show-contact":
            await _show_contact(store, args.contact_id, args.json)

        elif args.command == "audit":
            await _audit(store, args.json)

        elif args.command == "resync-org-name":
            count = await resync_organisation_name(store, args.organisation_id)
            print(f"Rewrote {count} documents")

    except (NotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Business console: contact, organisation and lead relationships"
    )
    parser.add_argument("--json", action="store_true", help="Print show/audit output as JSON")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init-db", help="Create the documents table")

    link_contact = sub.add_parser("link-contact", help="Link a contact to an organisation")
    link_contact.add_argument("--contact-id", required=True)
    link_contact.add_argument("--organisation-id", required=True)
    link_contact.add_argument("--role", default=None, help="Role at the organisation (optional)")
    link_contact.add_argument("--primary", action="store_true", default=False, help="Mark as primary contact")
    link_contact.add_argument("--priority", type=int, default=None, help="Lower sorts first (default 1 if primary, else 10)")
    link_contact.add_argument("--organisation-name", default=None, help="Skip the organisation name lookup")

    unlink_contact = sub.add_parser("unlink-contact", help="Remove a contact/organisation link")
    unlink_contact.add_argument("--relationship-id", required=True)
    unlink_contact.add_argument("--contact-id", default=None, help="Contact holding the link (avoids a scan)")

    link_org = sub.add_parser("link-lead-org", help="Attach a lead to an organisation")
    link_org.add_argument("--lead-id", required=True)
    link_org.add_argument("--organisation-id", required=True)
    link_org.add_argument("--organisation-name", required=True)

    unlink_org = sub.add_parser("unlink-lead-org", help="Clear a lead's organisation")
    unlink_org.add_argument("--lead-id", required=True)

    link_lc = sub.add_parser("link-lead-contact", help="Add a contact to a lead")
    link_lc.add_argument("--lead-id", required=True)
    link_lc.add_argument("--contact-id", required=True)

    unlink_lc = sub.add_parser("unlink-lead-contact", help="Remove a contact from a lead")
    unlink_lc.add_argument("--lead-id", required=True)
    unlink_lc.add_argument("--contact-id", required=True)

    show_lead = sub.add_parser("show-lead", help="Show a lead with its organisation and contacts")
    show_lead.add_argument("--lead-id", required=True)

    show_contact = sub.add_parser("show-contact", help="Show a contact with its organisations and leads")
    show_contact.add_argument("--contact-id", required=True)

    sub.add_parser("audit", help="Report dangling references and primary-contact conflicts")

    resync = sub.add_parser("resync-org-name", help="Copy an organisation's name onto leads and links")
    resync.add_argument("--organisation-id", required=True)

    return parser


async def _run_with_env_store(args: argparse.Namespace) -> int:
    store = SqlDocumentStore.from_env()
    try:
        return await run_command(args, store)
    finally:
        await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    return asyncio.run(_run_with_env_store(args))


if __name__ == "__main__":
    sys.exit(main())
