"""
Service layer.

Each service encapsulates the use cases of one domain.  Services call
the authorization resolver before touching a managed entity and the
pure validators before writing; handlers only translate HTTP to
service calls.
"""
