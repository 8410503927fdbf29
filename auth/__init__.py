"""
auth/ -- Accounts, credentials, tokens and the authorization gate for CampusDesk.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or profiles/.
api/ and profiles/ import from auth/, not the other way around.
"""
