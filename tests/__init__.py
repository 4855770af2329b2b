"""
Test suite for the MediBook appointment booking service.

Contains unit tests for the booking core and API tests through the FastAPI app.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
