# Package initialization
# Import all models to ensure relationships are properly established
from .patient import Patient, PatientSnapshot, DentalHistory, LifestyleHabits
from .staff import Staff
from .appointment import Appointment
from .treatment_plan import TreatmentPlan
from .notification import Notification
from .patient_communication import PatientCommunication

__all__ = [
    "Patient",
    "PatientSnapshot",
    "DentalHistory",
    "LifestyleHabits",
    "Staff",
    "Appointment",
    "TreatmentPlan",
    "Notification",
    "PatientCommunication",
]
