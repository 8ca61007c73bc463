"""
Telehealth Portal

FastAPI service behind a telehealth portal: patients book video
consultations with doctors, exchange pre-consultation forms, referrals,
prescriptions and messages, and administrators oversee users and bookings.
"""

__version__ = "1.0.0"
