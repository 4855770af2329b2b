"""
MediBook

A FastAPI-based healthcare appointment booking service: doctor directory,
slot booking without double-booking, and a role-gated appointment lifecycle.
"""

__version__ = "1.0.0"
