"""
Application layer package.

Use cases orchestrate domain objects through ports. They never
import FastAPI or SQLAlchemy.
"""
