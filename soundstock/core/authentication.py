"""
JWT authentication that accepts the access token from the Authorization
header or from the http-only cookie set at login.
"""
import logging

from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

logger = logging.getLogger(__name__)


class CookieJWTAuthentication(JWTAuthentication):
    """Header first, cookie second.

    A bad header token is rejected with 401 as usual. A bad or expired cookie
    is treated as anonymous so public endpoints (login, register) keep working
    for a browser still holding a stale cookie.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            return super().authenticate(request)

        raw_token = request.COOKIES.get(settings.JWT_AUTH_COOKIE)
        if not raw_token:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
            return self.get_user(validated_token), validated_token
        except (InvalidToken, AuthenticationFailed) as e:
            logger.debug(f"Ignoring invalid auth cookie: {str(e)}")
            return None


def set_auth_cookie(response, access_token):
    """Attach the access token cookie to a response"""
    response.set_cookie(
        settings.JWT_AUTH_COOKIE,
        str(access_token),
        max_age=settings.JWT_AUTH_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.JWT_AUTH_COOKIE_SECURE,
        samesite=settings.JWT_AUTH_COOKIE_SAMESITE,
        path='/',
    )
    return response


def delete_auth_cookie(response):
    response.delete_cookie(
        settings.JWT_AUTH_COOKIE,
        path='/',
        samesite=settings.JWT_AUTH_COOKIE_SAMESITE,
    )
    return response
