"""LifeClaim Adjudicator - death claim adjudication service."""

__version__ = "1.0.0"
