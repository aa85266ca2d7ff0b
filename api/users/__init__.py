"""
The `users` feature: CRUD over the single `users` table.
"""
