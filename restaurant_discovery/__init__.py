"""
Restaurant discovery service.

Filters restaurants in a relational store and ranks them by a weighted
score, optionally personalized by stored user preferences.
"""
