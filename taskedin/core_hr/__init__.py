"""Core HR module: Employee and Department models plus read-only lookups."""

from taskedin.core_hr.models import Department, Employee

__all__ = ["Employee", "Department"]
