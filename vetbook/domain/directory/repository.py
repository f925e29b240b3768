"""Directory repository - Owner, pet, guest and catalog lookups"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Clinic, Guest, GuestPet, Owner, Pet, Service, User, Veterinarian


class DirectoryRepository:
    """Repository for identity and catalog records consumed by appointments"""

    @staticmethod
    def get_owner(db: Session, owner_id: int) -> Optional[Owner]:
        return db.query(Owner).filter(Owner.id == owner_id).first()

    @staticmethod
    def get_owner_by_email(db: Session, email: str) -> Optional[Owner]:
        return db.query(Owner).filter(func.lower(Owner.email) == email.lower()).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @staticmethod
    def get_pet(db: Session, pet_id: int) -> Optional[Pet]:
        return db.query(Pet).filter(Pet.id == pet_id).first()

    @staticmethod
    def find_pet(db: Session, owner_id: int, name: str, pet_type: str) -> Optional[Pet]:
        """Find an owner's pet by case-insensitive name and exact type"""
        return (
            db.query(Pet)
            .filter(
                Pet.owner_id == owner_id,
                func.lower(Pet.name) == name.strip().lower(),
                Pet.type == pet_type,
            )
            .order_by(Pet.id)
            .first()
        )

    @staticmethod
    def add_pet(db: Session, owner: Owner, **pet_data) -> Pet:
        """Stage a new pet under owner; the caller commits"""
        pet = Pet(owner_id=owner.id, **pet_data)
        db.add(pet)
        owner.pet_count = (owner.pet_count or 0) + 1
        db.flush()
        return pet

    @staticmethod
    def get_guest_by_email(db: Session, email: str) -> Optional[Guest]:
        return db.query(Guest).filter(func.lower(Guest.email) == email.lower()).first()

    @staticmethod
    def add_guest(db: Session, pet_data: dict, **guest_data) -> tuple[Guest, GuestPet]:
        """Stage a guest with its embedded pet; the caller commits"""
        guest = Guest(**guest_data)
        guest_pet = GuestPet(**pet_data)
        guest.pets.append(guest_pet)
        db.add(guest)
        db.flush()
        return guest, guest_pet

    @staticmethod
    def get_clinic(db: Session, clinic_id: int) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.id == clinic_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_vet(db: Session, vet_id: int) -> Optional[Veterinarian]:
        return db.query(Veterinarian).filter(Veterinarian.id == vet_id).first()
