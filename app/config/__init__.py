# =============================================================================
# Django Project Configuration Package
# =============================================================================
# This package contains all Django configuration including environment
# parsing (env.py), settings, URLs and the ASGI/WSGI applications.
# =============================================================================
