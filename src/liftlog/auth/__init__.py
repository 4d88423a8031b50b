"""Authentication and authorization.

Learn: Users log in with username/password and receive an opaque bearer
token. Only the token's SHA-256 hash is stored. Each request resolves its
Authorization header to an Identity (Anonymous or Authenticated(user)),
which protected routes then require to be Authenticated.
"""
