"""Utilidades de peticiones, respuestas y claims HTTP."""
