"""Planning Center service - connection lifecycle and People import"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import PlanningCenterToken, User, utcnow
from ...security_utils import decrypt_token, encrypt_token, sign_state, verify_state
from ..members.schemas import BulkImportMember
from ..members.service import MemberService
from . import client
from .client import PlanningCenterError

logger = logging.getLogger(__name__)

EXTERNAL_SYSTEM = "PLANNING_CENTER"
STATE_SALT = "planning-center-state"


class PlanningCenterService:
    def __init__(self, db: Session):
        self.db = db

    def _get_token(self, church_id: str) -> Optional[PlanningCenterToken]:
        return (
            self.db.query(PlanningCenterToken)
            .filter(PlanningCenterToken.church_id == church_id)
            .first()
        )

    def _require_configured(self) -> None:
        if not client.is_configured():
            raise HTTPException(status_code=503, detail="Planning Center integration is not configured")

    def get_authorize_url(self, user: User) -> dict:
        self._require_configured()
        state = sign_state({"church_id": user.church_id, "user_id": user.id}, salt=STATE_SALT)
        return {"url": client.build_authorize_url(state)}

    def _store_tokens(self, church_id: str, user_id: Optional[str], tokens: dict) -> PlanningCenterToken:
        record = self._get_token(church_id)
        if record is None:
            record = PlanningCenterToken(church_id=church_id)
            self.db.add(record)

        record.user_id = user_id or record.user_id
        record.access_token = encrypt_token(tokens["access_token"])
        if tokens.get("refresh_token"):
            record.refresh_token = encrypt_token(tokens["refresh_token"])
        record.expires_at = utcnow() + timedelta(seconds=int(tokens.get("expires_in") or 7200))
        self.db.commit()
        self.db.refresh(record)
        return record

    async def handle_callback(self, code: str, state: str, user: User) -> dict:
        self._require_configured()
        payload = verify_state(state, salt=STATE_SALT)
        if not payload or payload.get("church_id") != user.church_id:
            raise HTTPException(status_code=400, detail="Invalid or expired authorization state")

        try:
            tokens = await client.exchange_code(code)
        except PlanningCenterError as e:
            logger.error(f"❌ Planning Center code exchange failed for church {user.church_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to connect to Planning Center")

        self._store_tokens(user.church_id, user.id, tokens)
        logger.info(f"✅ Planning Center connected for church {user.church_id}")
        return self.get_status(user.church_id)

    def get_status(self, church_id: str) -> dict:
        record = self._get_token(church_id)
        if not record:
            return {"connected": False, "lastSyncDate": None, "peopleCount": 0}
        return {
            "connected": True,
            "lastSyncDate": record.last_sync_date,
            "peopleCount": record.people_count,
        }

    async def _access_token(self, record: PlanningCenterToken) -> str:
        """Return a usable access token, refreshing it first when expired"""
        if record.expires_at and record.expires_at > utcnow() + timedelta(minutes=5):
            return decrypt_token(record.access_token)

        refresh_token = decrypt_token(record.refresh_token)
        if not refresh_token:
            raise HTTPException(status_code=401, detail="Planning Center session expired, please reconnect")

        try:
            tokens = await client.refresh_tokens(refresh_token)
        except PlanningCenterError as e:
            logger.error(f"❌ Planning Center token refresh failed for church {record.church_id}: {e}")
            raise HTTPException(status_code=401, detail="Planning Center session expired, please reconnect")

        record = self._store_tokens(record.church_id, None, tokens)
        logger.info(f"🔄 Refreshed Planning Center token for church {record.church_id}")
        return tokens["access_token"]

    async def import_people(self, church_id: str) -> dict:
        record = self._get_token(church_id)
        if not record:
            raise HTTPException(status_code=400, detail="Planning Center is not connected")

        access_token = await self._access_token(record)
        try:
            people = await client.fetch_people(access_token)
        except PlanningCenterError as e:
            logger.error(f"❌ Planning Center import failed for church {church_id}: {e}")
            raise HTTPException(status_code=502, detail="Failed to fetch people from Planning Center")

        items = [
            BulkImportMember(
                firstName=p["first_name"],
                lastName=p["last_name"],
                email=p["email"],
                phone=p["phone"],
                externalId=p["id"],
                externalSystem=EXTERNAL_SYSTEM,
            )
            for p in people
        ]
        result = MemberService(self.db).bulk_import(items, church_id)

        record = self._get_token(church_id)
        record.last_sync_date = utcnow()
        record.people_count = len(people)
        self.db.commit()

        return {**result, "peopleCount": len(people)}

    def disconnect(self, church_id: str) -> dict:
        record = self._get_token(church_id)
        if record:
            self.db.delete(record)
            self.db.commit()
            logger.info(f"🔌 Planning Center disconnected for church {church_id}")
        return {"message": "Planning Center disconnected"}
