"""
Fixed catalogs used by the leave request form.
In production, the backend owns these lists; the form only validates against them.
"""

LEAVE_TYPES = [
    "Permiso Médico",
    "Permiso Personal",
    "Vacaciones",
]

DEPARTMENTS = [
    "Recursos Humanos",
    "TIC",
    "Finanzas",
]

# Raw type codes returned by the permissions listing -> display labels
PERMISSION_TYPE_LABELS = {
    "vacation": "Vacaciones",
    "sick": "Permiso por Enfermedad",
    "personal": "Permiso Personal",
}

HOURS_PER_WORKDAY = 8

INVALID_RANGE_WARNING = "La fecha de salida no puede ser mayor a la fecha de regreso."


def is_valid_leave_type(leave_type: str | None) -> bool:
    """Check a leave type against the allowed set."""
    return leave_type in LEAVE_TYPES


def is_valid_department(department: str | None) -> bool:
    """Check a department against the allowed set."""
    return department in DEPARTMENTS


def format_permission_type(code: str) -> str:
    """Map a backend permission code to its label; unknown codes pass through."""
    return PERMISSION_TYPE_LABELS.get(code, code)
