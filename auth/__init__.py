"""auth/ -- Token issuance, token verification and their credential collaborators.

Layer rule: auth/ imports stdlib, third-party libraries and core/ only.
It does NOT import from api/. api/ and main.py import from auth/, not the
other way around.
"""
