"""
MediCloud Portal

A FastAPI-based healthcare portal for patients, doctors and pharmacists,
with authentication, appointment booking, prescriptions and billing.
"""

__version__ = "1.0.0"
