"""profiles/ -- Student, faculty and admin profile management.

Layer rule: profiles/ imports from auth/ and core/. It does NOT import from
api/. api/ imports from profiles/, not the other way around.
"""
