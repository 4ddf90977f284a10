"""Influence graph persistence providers.

SQLiteInfluenceGraphProvider stores artist identities, aliases, influence
edges and their provenance in data/influence.db.
"""
