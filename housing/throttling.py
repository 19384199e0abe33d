from rest_framework.throttling import AnonRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    """Per-client limit on the credential endpoints, rate from the ``login`` scope."""
    scope = 'login'
