"""
Relational storage layer.

Responsibilities:
- Own the SQLAlchemy engine and session factory.
- Persist restaurants, user preferences and the interaction log.
- Evaluate candidate predicates against the restaurant table.
"""
