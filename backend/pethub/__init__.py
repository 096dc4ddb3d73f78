"""Application package for the PetHub backend.

This package exposes the service, repository and model modules used by
the FastAPI application. Individual modules contain the concrete
implementations and documentation; HTTP controllers live in `routers`.
"""
