"""Owner service - OTP-gated registration and guest owners"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...models import Owner, User
from ...otp_broker import OTPBroker, OTPError, PendingEntryNotFound, get_registration_broker
from ..directory.repository import DirectoryRepository
from .schemas import GuestOwnerCreate, OwnerRegistrationRequest, OwnerVerifyRequest

logger = logging.getLogger(__name__)


class OwnerService:
    """Service layer for owner registration"""

    def __init__(self, db: Session, broker: Optional[OTPBroker] = None):
        self.db = db
        self.directory = DirectoryRepository()
        self.broker = broker or get_registration_broker()

    async def request_registration(
        self, data: OwnerRegistrationRequest, now: Optional[datetime] = None
    ) -> dict:
        """Stage profile fields and email the OTP"""
        logger.info(f"📨 Owner registration requested for {data.email}")

        if self.directory.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="Email already registered. Please log in.")

        otp = self.broker.stage(data.email, data.model_dump(), now=now)

        try:
            await email_service.send_otp_email(data.email, otp, purpose="verify your account")
        except Exception as e:
            logger.error(f"❌ Failed to send registration OTP to {data.email}: {e}")
            self.broker.discard(data.email)
            raise HTTPException(
                status_code=502, detail="Failed to send OTP email. Please try again."
            ) from e

        return {"message": "OTP sent to your email for verification."}

    async def verify_registration(
        self, data: OwnerVerifyRequest, now: Optional[datetime] = None
    ) -> Owner:
        """Create the verified user and its owner profile"""
        try:
            payload = self.broker.verify(data.email, data.otp, now=now)
        except PendingEntryNotFound as e:
            raise HTTPException(
                status_code=400, detail="No registration found for this email."
            ) from e
        except OTPError as e:
            raise HTTPException(status_code=400, detail=e.message) from e

        registration = OwnerRegistrationRequest.model_validate(payload)
        if self.directory.get_user_by_email(self.db, registration.email):
            self.broker.discard(registration.email)
            raise HTTPException(status_code=400, detail="Email already registered. Please log in.")

        # A guest owner with the same email is promoted to a registered one
        owner = self.directory.get_owner_by_email(self.db, registration.email)

        try:
            user = User(
                first_name=registration.first_name,
                last_name=registration.last_name,
                email=registration.email,
                address=registration.address,
                role="owner",
                is_verified=True,
            )
            self.db.add(user)
            self.db.flush()

            if owner is None:
                owner = Owner(email=registration.email)
                self.db.add(owner)
            owner.user_id = user.id
            owner.first_name = registration.first_name
            owner.last_name = registration.last_name
            owner.phone = registration.phone
            owner.address = registration.address
            owner.is_guest = False

            self.db.commit()
            self.db.refresh(owner)
        except Exception:
            self.db.rollback()
            raise

        self.broker.discard(registration.email)
        logger.info(f"✅ Owner {owner.id} registered and verified")

        try:
            await email_service.send_owner_welcome_email(owner.email, owner.first_name)
        except Exception as e:
            logger.warning(f"⚠️ Welcome email failed for {owner.email}: {e}")

        return owner

    def create_guest_owner(self, data: GuestOwnerCreate) -> tuple[Owner, bool]:
        """Return (owner, created); an existing guest owner is reused"""
        existing = self.directory.get_owner_by_email(self.db, data.email)
        if existing and existing.is_guest:
            return existing, False
        if existing:
            raise HTTPException(status_code=400, detail="Email already registered. Please log in.")

        owner = Owner(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            is_guest=True,
        )
        self.db.add(owner)
        self.db.commit()
        self.db.refresh(owner)
        logger.info(f"✅ Guest owner {owner.id} created")
        return owner, True
