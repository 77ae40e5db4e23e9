"""Entity store: one repository per table over a SQLAlchemy session."""
