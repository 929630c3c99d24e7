from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "phone",
            "role",
        ]
        read_only_fields = fields


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token pair serializer that also embeds the user's role claim."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = User.Role.ADMIN if user.is_admin else user.role
        return token


def issue_tokens_for_user(user: User) -> dict:
    refresh = RoleTokenObtainPairSerializer.get_token(user)
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }
