from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from .serializers import RoleTokenObtainPairSerializer, UserSerializer


class RoleTokenObtainPairView(TokenObtainPairView):
    """Issue an access/refresh pair carrying ``userId`` and ``role`` claims."""

    serializer_class = RoleTokenObtainPairSerializer


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def me(request):
    return Response(
        {"success": True, "user": UserSerializer(request.user).data},
        status=status.HTTP_200_OK,
    )
