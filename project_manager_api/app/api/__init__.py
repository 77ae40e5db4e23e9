"""
HTTP layer.

``errors`` maps domain error kinds to status codes and installs the
exception handlers; versioned routes live in subpackages such as
``v1``, each exposing a top-level ``router``.
"""
