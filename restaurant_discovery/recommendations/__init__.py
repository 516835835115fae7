"""
Restaurant search engine.

Responsibilities:
- Parse search filters leniently from query parameters.
- Translate filters into store predicates and fetch at most 50 candidates.
- Score and rank candidates, anonymously or against a user's preferences.
"""
