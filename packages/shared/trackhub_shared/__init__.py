"""Shared pydantic schemas for the Trackhub server and API clients."""
