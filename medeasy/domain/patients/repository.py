"""Patient repository - Database operations for patients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment, Patient


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def get_patient_by_id(db: Session, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id).first()

    @staticmethod
    def get_patient_by_email(db: Session, email: str) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.email == email).first()

    @staticmethod
    def email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(Patient.id).filter(Patient.email == email)
        if exclude_id is not None:
            query = query.filter(Patient.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def get_patients(db: Session) -> list[Patient]:
        return db.query(Patient).order_by(Patient.created_at.desc(), Patient.id.desc()).all()

    @staticmethod
    def count_open_appointments(db: Session, patient_id: int) -> int:
        """Pending or confirmed appointments still holding a slot for this patient"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.patient_id == patient_id,
                Appointment.status.in_(("pending", "confirmed")),
            )
            .count()
        )

    @staticmethod
    def create_patient(db: Session, **patient_data) -> Patient:
        patient = Patient(**patient_data)
        db.add(patient)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def update_patient(db: Session, patient: Patient, **updates) -> Patient:
        """Update a patient with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(patient, key):
                setattr(patient, key, value)

        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def delete_patient(db: Session, patient: Patient) -> None:
        """Delete a patient; their past appointments stay with patient_id cleared"""
        db.delete(patient)
        db.commit()
