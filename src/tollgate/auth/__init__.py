"""Authentication primitives.

Three independent pieces, composed by services.auth_service:
1. Passwords → PBKDF2 hash + salt (password.py)
2. Session envelopes → AES-256-CBC, client-held (session_crypto.py)
3. Bearer tokens → short-lived stateless JWT (jwt.py)
"""
