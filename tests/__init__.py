"""
Test suite for the MediCloud Portal.

Contains unit tests for the scheduling and billing helpers and API tests for
the patient, doctor and pharmacist flows.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
