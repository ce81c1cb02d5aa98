"""
Core business logic package for the trips service.

All business logic, data access, and service integrations live here.
Lambda handlers in src/handlers/ are thin route tables that call into core/.
"""

__all__: list[str] = []
