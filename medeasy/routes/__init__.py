from .admin import router as admin_router
from .doctor import router as doctor_router
from .patient import router as patient_router

__all__ = ["admin_router", "doctor_router", "patient_router"]
