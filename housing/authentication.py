"""
JWT authentication for the API.

This module defines a thin subclass of simplejwt's ``JWTAuthentication``
so that settings refer to a stable project import path rather than to the
library.  Keeping it outside the view modules avoids circular imports when
REST framework loads authentication classes during initialisation.
"""
from __future__ import annotations

from rest_framework_simplejwt import authentication


class JWTAuthentication(authentication.JWTAuthentication):
    """Bearer token authentication; inactive users are rejected by simplejwt."""

    www_authenticate_realm = 'hostel'
