"""auth/ -- Authentication core: password hashing, signed tokens, sessions.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or inventory/.
api/ imports from auth/, not the other way around.
"""
