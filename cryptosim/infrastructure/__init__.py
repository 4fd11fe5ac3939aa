"""
Infrastructure layer package.

Concrete adapters implementing the domain ports: SQLAlchemy ORM
repositories, the Binance REST client, bcrypt, PyJWT and disk storage.
"""
