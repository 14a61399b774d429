"""
Test suite for MediCareBook.

Contains service-level and API tests for appointments, doctor applications
and notification mailboxes.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
