"""
Record matching primitives.

This package provides the pieces every stage is built on:
- fields: field-path parsing, resolution and leaf-field discovery
- normalize: case folding and string/number coercion
- fuzzy: Levenshtein-ratio, Jaro-Winkler and n-gram scorers
- engine: strategy dispatch for a (field, value, query) triple
"""
