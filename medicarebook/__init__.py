"""
MediCareBook

A FastAPI-based backend for booking doctor appointments, with doctor
application approval and per-user notification mailboxes.
"""

__version__ = "1.0.0"
