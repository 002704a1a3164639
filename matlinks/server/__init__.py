"""
MatLinks Server Package.

The FastAPI application serving the admin, member and billing APIs.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and application constants.
    services: Billing, dunning, check-in and authentication logic used by the routes.
    middleware: Request logging and timing.
    exception_handlers: Translation of domain errors into JSON responses.
"""
