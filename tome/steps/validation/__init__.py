"""
Web cross-validation of resolved metadata.

- providers.py: search providers, tried in priority order
- analysis.py: scoring of search results against the candidate fields
- validation_step.py: query building and the provider chain
"""
