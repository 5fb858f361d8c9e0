"""
HTTP interceptors for FastAPI/Starlette services.
"""
