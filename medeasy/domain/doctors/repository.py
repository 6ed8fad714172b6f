"""Doctor repository - Database operations for doctors"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Doctor


class DoctorRepository:
    """Repository for doctor database operations"""

    @staticmethod
    def get_doctor_by_id(db: Session, doctor_id: int) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id).first()

    @staticmethod
    def get_doctor_by_email(db: Session, email: str) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.email == email).first()

    @staticmethod
    def email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
        """Whether another doctor already uses this email"""
        query = db.query(Doctor.id).filter(Doctor.email == email)
        if exclude_id is not None:
            query = query.filter(Doctor.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def get_doctors(db: Session) -> list[Doctor]:
        return db.query(Doctor).order_by(Doctor.name.asc()).all()

    @staticmethod
    def search_doctors(
        db: Session,
        speciality: Optional[str] = None,
        name: Optional[str] = None,
        available: Optional[bool] = True,
    ) -> list[Doctor]:
        """Directory search; name matches case-insensitively anywhere in the name"""
        query = db.query(Doctor)

        if speciality:
            query = query.filter(Doctor.speciality == speciality)

        if name:
            query = query.filter(Doctor.name.ilike(f"%{name}%"))

        if available is not None:
            query = query.filter(Doctor.available == available)

        return query.all()

    @staticmethod
    def get_specialities(db: Session) -> list[str]:
        rows = db.query(Doctor.speciality).distinct().order_by(Doctor.speciality.asc()).all()
        return [row.speciality for row in rows]

    @staticmethod
    def create_doctor(db: Session, **doctor_data) -> Doctor:
        doctor = Doctor(**doctor_data)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def update_doctor(db: Session, doctor: Doctor, **updates) -> Doctor:
        """Update a doctor with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(doctor, key):
                setattr(doctor, key, value)

        db.commit()
        db.refresh(doctor)
        return doctor
