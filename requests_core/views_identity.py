# requests_core/views_identity.py
from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from requests_core.workflows.session import actor_for


class WhoAmIView(APIView):
    """
    Returns the currently authenticated user, their roles and the display
    name recorded on deadline and status history.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        actor = actor_for(user)

        return Response(
            {
                "id": user.id,
                "username": user.get_username(),
                "display_name": actor.display_name,
                "is_superuser": bool(getattr(user, "is_superuser", False)),
                "roles": sorted(actor.roles),
                "primary_role": actor.primary_role,
            }
        )
