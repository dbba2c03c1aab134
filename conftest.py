import pytest


@pytest.fixture(autouse=True)
def _test_settings(settings):
    # Prevent SecurityMiddleware from forcing https://testserver/...
    settings.SECURE_SSL_REDIRECT = False

    # Secure cookies break session auth over plain http in tests
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False

    # Notifications stay log-only unless a test opts in
    settings.WORKFLOW_EMAIL_NOTIFICATIONS = False
    settings.WORKFLOW_NOTIFY_EMAILS = []
