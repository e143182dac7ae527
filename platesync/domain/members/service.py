"""Member service - CRUD, CSV and bulk import, duplicate handling"""

import csv
import io
import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ...models import Member
from .repository import MemberRepository
from .schemas import BulkImportMember, MemberCreate, MemberUpdate

logger = logging.getLogger(__name__)

MAX_CSV_SIZE = 5 * 1024 * 1024  # 5MB

# Normalized CSV header -> BulkImportMember field
CSV_COLUMNS = {
    "firstname": "firstName",
    "first": "firstName",
    "lastname": "lastName",
    "last": "lastName",
    "surname": "lastName",
    "email": "email",
    "emailaddress": "email",
    "phone": "phone",
    "phonenumber": "phone",
    "notes": "notes",
}


def _normalize_header(header: str) -> str:
    return "".join(ch for ch in (header or "").lower() if ch.isalnum())


def _keep_priority(member: Member) -> tuple:
    """Sort key: external id first, then contact info, then oldest"""
    return (
        0 if member.external_id else 1,
        0 if (member.email or member.phone) else 1,
        member.created_at,
        member.id,
    )


class MemberService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = MemberRepository()

    def get_members(self, church_id: str, search: Optional[str] = None) -> list[Member]:
        return self.repo.get_members(self.db, church_id, search)

    def get_member(self, member_id: int, church_id: str) -> Member:
        member = self.repo.get_member_by_id(self.db, member_id, church_id)
        if not member:
            raise HTTPException(status_code=404, detail="Member not found")
        return member

    def _check_email_available(self, church_id: str, email: Optional[str], exclude_id: Optional[int] = None):
        if email and self.repo.get_member_by_email(self.db, church_id, email, exclude_id=exclude_id):
            raise HTTPException(status_code=409, detail="A member with this email already exists")

    def create_member(self, data: MemberCreate, church_id: str) -> Member:
        self._check_email_available(church_id, data.email)

        member = self.repo.create_member(
            self.db,
            church_id,
            first_name=data.firstName,
            last_name=data.lastName,
            email=data.email,
            phone=data.phone,
            is_visitor=data.isVisitor,
            notes=data.notes,
        )
        logger.info(f"✅ Created member {member.id} in church {church_id}")
        return member

    def update_member(self, member_id: int, data: MemberUpdate, church_id: str) -> Member:
        member = self.get_member(member_id, church_id)
        provided = data.model_dump(exclude_unset=True)

        updates = {}
        if provided.get("firstName"):
            updates["first_name"] = provided["firstName"].strip()
        if provided.get("lastName"):
            updates["last_name"] = provided["lastName"].strip()
        if "email" in provided:
            self._check_email_available(church_id, provided["email"], exclude_id=member.id)
            updates["email"] = provided["email"]
        if "phone" in provided:
            updates["phone"] = provided["phone"]
        if provided.get("isVisitor") is not None:
            updates["is_visitor"] = provided["isVisitor"]
        if "notes" in provided:
            updates["notes"] = provided["notes"]

        return self.repo.update_member(self.db, member, **updates)

    def delete_member(self, member_id: int, church_id: str) -> dict:
        member = self.get_member(member_id, church_id)
        if self.repo.count_donations(self.db, member.id) > 0:
            raise HTTPException(
                status_code=400, detail="Cannot delete a member with recorded donations"
            )
        self.repo.delete_member(self.db, member)
        return {"message": "Member deleted"}

    # ========================================================================
    # IMPORT
    # ========================================================================

    def _match_by_name(self, church_id: str, item: BulkImportMember) -> Optional[Member]:
        candidates = self.repo.get_members_by_name(self.db, church_id, item.firstName, item.lastName)
        if item.email:
            candidates = [m for m in candidates if not m.email or m.email.lower() == item.email]
        if item.phone:
            candidates = [m for m in candidates if not m.phone or m.phone == item.phone]
        return candidates[0] if candidates else None

    def bulk_import(self, items: list[BulkImportMember], church_id: str) -> dict:
        """
        Upsert members: match on external id, then on name, otherwise insert.

        Returns counts of created, updated and skipped rows; ``imported`` is
        created + updated.
        """
        created = updated = skipped = 0

        for item in items:
            first_name = (item.firstName or "").strip()
            last_name = (item.lastName or "").strip()
            item.firstName, item.lastName = first_name, last_name

            member = None
            if item.externalId and item.externalSystem:
                member = self.repo.get_member_by_external_id(
                    self.db, church_id, item.externalId, item.externalSystem
                )
                if member:
                    updates = {"email": item.email or member.email, "phone": item.phone or member.phone}
                    if first_name:
                        updates["first_name"] = first_name
                    if last_name:
                        updates["last_name"] = last_name
                    if item.notes:
                        updates["notes"] = item.notes
                    self._apply_import_email(church_id, member, updates)
                    self.repo.update_member(self.db, member, commit=False, **updates)
                    updated += 1
                    continue

            if not first_name or not last_name:
                skipped += 1
                continue

            member = self._match_by_name(church_id, item)
            if member:
                updates = {
                    "phone": item.phone or member.phone,
                    "email": member.email or item.email,
                    "notes": item.notes or member.notes,
                }
                if item.externalId and item.externalSystem:
                    updates["external_id"] = item.externalId
                    updates["external_system"] = item.externalSystem
                self._apply_import_email(church_id, member, updates)
                self.repo.update_member(self.db, member, commit=False, **updates)
                updated += 1
                continue

            email = item.email
            if email and self.repo.get_member_by_email(self.db, church_id, email):
                logger.warning(f"⚠️ Import dropped duplicate email {email} for {first_name} {last_name}")
                email = None

            self.repo.create_member(
                self.db,
                church_id,
                commit=False,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=item.phone,
                notes=item.notes,
                external_id=item.externalId,
                external_system=item.externalSystem,
            )
            created += 1

        self.db.commit()
        logger.info(
            f"📥 Member import for church {church_id}: {created} created, {updated} updated, {skipped} skipped"
        )
        return {"imported": created + updated, "created": created, "updated": updated, "skipped": skipped}

    def _apply_import_email(self, church_id: str, member: Member, updates: dict) -> None:
        """Keep the member's current email if the imported one belongs to someone else"""
        email = updates.get("email")
        if email and self.repo.get_member_by_email(self.db, church_id, email, exclude_id=member.id):
            updates["email"] = member.email

    async def import_csv(self, file: UploadFile, church_id: str) -> dict:
        content = await file.read()
        if not content:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
        if len(content) > MAX_CSV_SIZE:
            raise HTTPException(status_code=400, detail="File too large. Maximum size is 5MB")

        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")

        reader = csv.DictReader(io.StringIO(text))
        if not reader.fieldnames:
            raise HTTPException(status_code=400, detail="CSV file has no header row")

        column_map = {}
        for header in reader.fieldnames:
            field = CSV_COLUMNS.get(_normalize_header(header))
            if field and field not in column_map.values():
                column_map[header] = field

        if "firstName" not in column_map.values() or "lastName" not in column_map.values():
            raise HTTPException(
                status_code=400, detail="CSV must include 'First Name' and 'Last Name' columns"
            )

        items: list[BulkImportMember] = []
        errors: list[dict] = []
        # Row 1 is the header
        for row_number, row in enumerate(reader, start=2):
            values = {field: (row.get(header) or "").strip() for header, field in column_map.items()}
            if not values.get("firstName") or not values.get("lastName"):
                errors.append({"row": row_number, "error": "Missing first or last name"})
                continue
            items.append(BulkImportMember(**{k: v or None for k, v in values.items()}))

        result = self.bulk_import(items, church_id) if items else {
            "imported": 0, "created": 0, "updated": 0, "skipped": 0,
        }
        result["skipped"] += len(errors)
        result["errors"] = errors
        return result

    # ========================================================================
    # DUPLICATES
    # ========================================================================

    def _group_by_name(self, church_id: str) -> list[list[Member]]:
        groups: dict[tuple[str, str], list[Member]] = {}
        for member in self.repo.get_members(self.db, church_id):
            key = (member.first_name.strip().lower(), member.last_name.strip().lower())
            groups.setdefault(key, []).append(member)
        return [group for group in groups.values() if len(group) > 1]

    def get_duplicates(self, church_id: str) -> list[list[Member]]:
        """Groups of members sharing a first and last name"""
        return self._group_by_name(church_id)

    def remove_duplicates(self, church_id: str) -> dict:
        """
        Delete redundant same-name members that carry no email or phone.

        Within a same-name group only members without contact info are
        candidates. The best of those (external id, then oldest) is kept and
        the rest deleted. Members with donations are never deleted.
        """
        with_donations = self.repo.get_member_ids_with_donations(self.db, church_id)
        deleted = 0

        for group in self._group_by_name(church_id):
            bare = [m for m in group if not m.email and not m.phone]
            if len(bare) < 2:
                continue

            keeper = sorted(bare, key=_keep_priority)[0]
            for member in bare:
                if member.id == keeper.id or member.id in with_donations:
                    continue
                self.db.delete(member)
                deleted += 1

        self.db.commit()
        logger.info(f"🗑️ Removed {deleted} duplicate member(s) from church {church_id}")
        return {"deleted": deleted}
