"""Patient record service - doctor-scoped records, uploads and public lookup"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ...models import PatientRecord
from ...services.supabase_service import (
    SupabaseError,
    SupabaseService,
    profile_address,
    profile_display_name,
)
from ...utils.file_storage import (
    MAX_ATTACHMENT_SIZE_BYTES,
    MAX_AVATAR_SIZE_BYTES,
    format_size_kb,
    save_upload,
)
from .repository import RecordRepository
from .schemas import (
    HydratedRecordResponse,
    PublicProfile,
    PublicRecordResponse,
    RecordCreate,
    RecordResponse,
    RecordUpdate,
)

logger = logging.getLogger(__name__)


class RecordService:
    """Service layer for patient records"""

    def __init__(self, db: Session, supabase: SupabaseService):
        self.db = db
        self.supabase = supabase
        self.repo = RecordRepository()

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    async def hydrate(self, records: list[PatientRecord]) -> list[HydratedRecordResponse]:
        """
        Merge Supabase profile and medical record data into records linked to a
        platform patient. Local values win; profile data only fills gaps.
        """
        base = [HydratedRecordResponse.model_validate(r) for r in records]
        ids = [r.patient_external_id for r in records if r.patient_external_id]
        if not ids or not self.supabase.configured:
            return base

        try:
            profiles = await self.supabase.get_profiles(ids)
            medical = {m.get("user_id"): m for m in await self.supabase.get_medical_records(ids)}
        except SupabaseError as e:
            logger.warning(f"⚠️ Returning records without profile data: {e.message}")
            return base

        hydrated = []
        for item in base:
            profile = profiles.get(item.patient_external_id)
            if not profile:
                hydrated.append(item)
                continue
            med = medical.get(item.patient_external_id) or {}
            name = item.patient_name if item.patient_name and item.patient_name != "Patient" else None
            hydrated.append(
                item.model_copy(
                    update={
                        "patient_name": name or profile_display_name(profile, item.patient_name),
                        "patient_email": item.patient_email or profile.get("email"),
                        "patient_phone": item.patient_phone or profile.get("phone") or profile.get("phone_number"),
                        "patient_address": profile_address(profile) or item.patient_address,
                        "avatar_url": item.avatar_url or profile.get("avatar_url") or profile.get("image_url"),
                        "blood_group": item.blood_group or med.get("blood_group"),
                        "height": item.height or med.get("height"),
                        "weight": item.weight or med.get("weight"),
                        "age": med.get("age"),
                        "gender": med.get("gender"),
                        "bmi": med.get("bmi"),
                    }
                )
            )
        return hydrated

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get_record(self, record_id: str, doctor_id: str) -> PatientRecord:
        record = self.repo.get_for_doctor(self.db, record_id, doctor_id)
        if not record:
            raise HTTPException(status_code=404, detail="Record not found")
        return record

    async def list_records(self, doctor_id: str) -> list[HydratedRecordResponse]:
        return await self.hydrate(self.repo.list_for_doctor(self.db, doctor_id))

    async def get_hydrated(self, record_id: str, doctor_id: str) -> HydratedRecordResponse:
        return (await self.hydrate([self.get_record(record_id, doctor_id)]))[0]

    def create_record(self, doctor_id: str, data: RecordCreate) -> RecordResponse:
        if not data.patient_name or not data.patient_name.strip():
            raise HTTPException(status_code=400, detail="patient_name required")

        record = self.repo.create(self.db, doctor_id, **data.model_dump())
        logger.info(f"✅ Patient record {record.id} created for doctor {doctor_id}")
        return RecordResponse.model_validate(record)

    def update_record(self, record_id: str, doctor_id: str, data: RecordUpdate) -> RecordResponse:
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")
        if "patient_name" in updates and not (updates["patient_name"] or "").strip():
            raise HTTPException(status_code=400, detail="patient_name required")
        for list_field in ("treatments", "prescriptions", "attachments"):
            if list_field in updates and updates[list_field] is None:
                updates[list_field] = []
        for flag in ("on_platform", "consultations"):
            if flag in updates and updates[flag] is None:
                updates.pop(flag)

        record = self.repo.update(self.db, self.get_record(record_id, doctor_id), **updates)
        return RecordResponse.model_validate(record)

    async def add_attachment(self, record_id: str, doctor_id: str, file: UploadFile) -> RecordResponse:
        record = self.get_record(record_id, doctor_id)
        stored = await save_upload(file, "records", MAX_ATTACHMENT_SIZE_BYTES)
        attachment = {"name": stored["name"], "size": format_size_kb(stored["size_bytes"]), "url": stored["url"]}
        # Reassign so the JSON column is flagged dirty
        record = self.repo.update(self.db, record, attachments=[*(record.attachments or []), attachment])
        logger.info(f"📎 Attachment {attachment['name']} added to record {record_id}")
        return RecordResponse.model_validate(record)

    async def set_avatar(self, record_id: str, doctor_id: str, file: UploadFile) -> RecordResponse:
        record = self.get_record(record_id, doctor_id)
        stored = await save_upload(file, "records", MAX_AVATAR_SIZE_BYTES, image_only=True)
        record = self.repo.update(self.db, record, avatar_url=stored["url"])
        return RecordResponse.model_validate(record)

    # ------------------------------------------------------------------
    # Consultation bookkeeping
    # ------------------------------------------------------------------

    async def record_consultation(self, doctor_id: str, patient_external_id: str) -> PatientRecord:
        """
        Create the doctor's record for a platform patient from their profile,
        or bump the consultation count when one already exists.
        """
        existing = self.repo.get_by_patient(self.db, doctor_id, patient_external_id)
        if existing:
            return self.repo.update(self.db, existing, consultations=(existing.consultations or 0) + 1)

        profile: Optional[dict] = None
        if self.supabase.configured:
            try:
                profile = await self.supabase.get_profile(patient_external_id)
            except SupabaseError as e:
                logger.warning(f"⚠️ Creating record without profile for {patient_external_id}: {e.message}")

        record = self.repo.create(
            self.db,
            doctor_id,
            patient_name=profile_display_name(profile),
            patient_email=(profile or {}).get("email"),
            patient_phone=(profile or {}).get("phone") or (profile or {}).get("phone_number"),
            patient_address=profile_address(profile),
            avatar_url=(profile or {}).get("avatar_url") or (profile or {}).get("image_url"),
            patient_external_id=patient_external_id,
            on_platform=True,
            qr_code=f"QR-{patient_external_id[:8]}",
            consultations=1,
        )
        logger.info(f"✅ Patient record {record.id} created from consultation for doctor {doctor_id}")
        return record

    # ------------------------------------------------------------------
    # Public lookup
    # ------------------------------------------------------------------

    async def public_lookup(self, id_or_qr: str) -> PublicRecordResponse:
        record = self.repo.get_by_id_or_qr(self.db, id_or_qr)
        if not record:
            raise HTTPException(status_code=404, detail="Record not found")

        profile = None
        if record.on_platform and record.patient_external_id and self.supabase.configured:
            try:
                profile = await self.supabase.get_profile(record.patient_external_id)
            except SupabaseError as e:
                logger.warning(f"⚠️ Public lookup of record {record.id} without profile: {e.message}")

        data = RecordResponse.model_validate(record).model_dump(exclude={"doctor_id"})
        if profile:
            data["blood_group"] = record.blood_group or profile.get("blood_group")
            data["height"] = record.height or profile.get("height")
            data["weight"] = record.weight or profile.get("weight")
            data["profile"] = PublicProfile(
                full_name=profile.get("full_name") or profile.get("name"),
                age=profile.get("age"),
                gender=profile.get("gender"),
                blood_group=profile.get("blood_group"),
                height=profile.get("height"),
                weight=profile.get("weight"),
                avatar_url=profile.get("avatar_url") or profile.get("image_url") or record.avatar_url,
                primary_condition=profile.get("primary_condition"),
                medical_file_url=profile.get("medical_file_url"),
            )
        return PublicRecordResponse(**data)
