"""Account output serializers.

Input validation lives in Pydantic DTOs; these only render users.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from modules.accounts.services import full_name


class AccountSerializer(serializers.ModelSerializer):
    name = serializers.SerializerMethodField()

    class Meta:
        model = get_user_model()
        fields = ["id", "username", "email", "name", "is_staff"]
        read_only_fields = fields

    def get_name(self, obj) -> str:
        return full_name(obj)


class TokenPairSerializer(serializers.Serializer):
    access = serializers.CharField()
    refresh = serializers.CharField()


class RegistrationSerializer(serializers.Serializer):
    user = AccountSerializer()
    tokens = TokenPairSerializer()
