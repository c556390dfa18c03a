"""JSON web API for py-vmsim.

This package provides a Flask application that runs simulations over
HTTP.  It is an **optional** extra — install with::

    pip install py-vmsim[web]

The ``create_app`` factory in ``app.py`` serves two endpoints:

- ``GET /api/status`` — default configuration and policy names.
- ``POST /api/simulate`` — run programs and return every tick snapshot.
"""
