from django.conf import settings
from drf_spectacular.extensions import OpenApiAuthenticationExtension


class IdentitySessionScheme(OpenApiAuthenticationExtension):
    target_class = 'apps.accounts.identity.IdentitySessionAuthentication'
    name = 'sessionAuth'

    def get_security_definition(self, auto_schema):
        return {
            'type': 'apiKey',
            'in': 'cookie',
            'name': settings.SESSION_COOKIE_NAME,
        }
