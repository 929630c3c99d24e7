"""
Bearer-token verification for the storefront API.

The storefront front-end keeps its JWT in a ``token`` cookie, while API
clients send ``Authorization: Bearer <token>``. Both are accepted; the
header wins when both are present.
"""

import logging

from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import CSRFCheck
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

logger = logging.getLogger(__name__)


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    simplejwt authentication that falls back to the auth cookie.

    A missing, expired or otherwise unverifiable token leaves the caller
    anonymous; views that need an identity refuse it through their
    permission classes. Unsafe requests authenticated by the cookie must
    pass Django's CSRF check, as with session authentication.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            try:
                return super().authenticate(request)
            except InvalidToken as exc:
                logger.debug("Ignoring unverifiable bearer token: %s", exc)
                return None

        raw_token = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
        if not raw_token:
            return None

        try:
            validated_token = self.get_validated_token(raw_token.encode())
            user = self.get_user(validated_token)
        except InvalidToken as exc:
            logger.debug("Ignoring unverifiable %s cookie: %s", settings.AUTH_COOKIE_NAME, exc)
            return None

        self.enforce_csrf(request)
        return user, validated_token

    def enforce_csrf(self, request):
        def dummy_get_response(request):
            return None

        check = CSRFCheck(dummy_get_response)
        check.process_request(request)
        reason = check.process_view(request, None, (), {})
        if reason:
            raise exceptions.PermissionDenied(f"CSRF Failed: {reason}")
