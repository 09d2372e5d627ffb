"""Authentication: credentials, session tokens, and the request gate.

Learn: Two principal kinds share one protocol:
1. Staff users → username/password → JWT (1h by default)
2. Customers → username/password → JWT (7d by default)

The token travels in exactly one carrier per deployment: an
Authorization: Bearer header or an httponly cookie.
"""
