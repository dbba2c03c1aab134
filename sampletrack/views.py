from rest_framework.response import Response
from rest_framework.views import APIView


class ApiHomeView(APIView):
    """JSON index of the public entry points."""

    authentication_classes = []
    permission_classes = []

    def get(self, request):
        return Response(
            {
                "service": "SampleTrack",
                "auth": {
                    "token_obtain": "/api/token/",
                    "token_refresh": "/api/token/refresh/",
                    "browsable_login": "/api/auth/login/",
                },
                "docs": {
                    "schema": "/api/schema/",
                    "swagger": "/api/schema/swagger-ui/",
                    "redoc": "/api/schema/redoc/",
                },
                "api": {
                    "requests": "/api/requests/",
                    "check_duplicates": "/api/requests/check-duplicates/",
                    "deadline": "/api/requests/<id>/deadline/",
                    "templates": "/api/templates/",
                    "workflow_definition": "/api/workflows/definition/",
                    "whoami": "/api/whoami/",
                    "health": "/api/health/",
                },
                "admin": "/admin/",
            }
        )
