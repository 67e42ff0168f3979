"""Tollgate — user accounts and session/token authentication service.

Stores user records with PBKDF2 credentials and runs the login flow:
persisted sessions handed to clients as encrypted envelopes, plus
short-lived JWTs for stateless checks.
"""

__version__ = "0.1.0"
