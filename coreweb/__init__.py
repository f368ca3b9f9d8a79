"""
CoreWeb: componentes reutilizables para APIs FastAPI.

- Búsqueda dinámica (ordenación por nombre de campo y paginación)
- Respuestas de error en formato problem details
- Autorización por roles, feature flags y auditoría
- Formatters CSV, localización y documentación versionada
"""

__version__ = "1.0.0"
