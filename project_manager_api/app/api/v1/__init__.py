"""
Version 1 of the API.

Bundles the user, project, sprint and task endpoints mounted under
``/api/v1``, together with the query-string filter dependencies they
share.
"""
