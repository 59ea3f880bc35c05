"""
Token authentication for the API.

Separate from any view module so DRF can import authentication classes
during start-up without circular imports.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>``.

    DRF already refuses tokens of inactive users, which is what makes an
    archived account lose access immediately even before its token is
    deleted.
    """

    keyword = 'Token'
