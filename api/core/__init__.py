"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks every feature uses (settings, DB pool
wiring, request dependencies, error rendering). Keep feature-specific SQL in
the feature package (e.g. `users/`).
"""
