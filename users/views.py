"""Account endpoints.

Sign-in flows are provided by the session/JWT authentication classes; this
module only exposes the current user's identity and role.
"""

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import CurrentUserSerializer


class CurrentUserView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Account Endpoints"],
        summary="Current user",
        description="Returns the authenticated user's id, display name and role.",
        examples=[
            OpenApiExample(
                "Me",
                value={"id": 1, "username": "rina", "email": "rina@example.com", "display_name": "Rina", "role": "sales"},
            )
        ],
    )
    def get(self, request):
        return Response(CurrentUserSerializer(request.user).data)
