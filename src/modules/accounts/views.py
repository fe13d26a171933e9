"""Account API views.

- ``POST /api/v1/auth/register/``: public sign-up; answers with the new
  account and a SimpleJWT token pair.
- ``GET|PATCH /api/v1/me``: read or edit the signed-in account.
- ``POST /api/v1/me/password/``: change the signed-in account's password.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from modules.accounts.dtos import ChangePasswordDTO, RegisterDTO, UpdateProfileDTO
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.accounts.serializers import AccountSerializer, RegistrationSerializer
from modules.accounts.services import AccountService
from modules.core.responses import domain_error_response
from shared.domain.exceptions import DomainError


class _AccountView(APIView):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService(repository=AccountDjangoRepository())


class RegisterView(_AccountView):
    permission_classes = [AllowAny]
    authentication_classes: list = []
    throttle_scope = "registration"
    serializer_class = RegistrationSerializer

    def post(self, request: Request) -> Response:
        try:
            dto = RegisterDTO.build(request.data)
            user = self._service.register(dto)
        except DomainError as exc:
            return domain_error_response(exc)

        refresh = RefreshToken.for_user(user)
        payload = {
            "user": user,
            "tokens": {"access": str(refresh.access_token), "refresh": str(refresh)},
        }
        return Response(
            RegistrationSerializer(payload).data, status=status.HTTP_201_CREATED
        )


class MeView(_AccountView):
    """GET /api/v1/me: profile of the authenticated account; PATCH edits it."""

    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer

    def get(self, request: Request) -> Response:
        return Response(AccountSerializer(request.user).data)

    def patch(self, request: Request) -> Response:
        try:
            dto = UpdateProfileDTO.build(request.data)
            user = self._service.update_profile(request.user, dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(AccountSerializer(user).data)


class ChangePasswordView(_AccountView):
    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        try:
            dto = ChangePasswordDTO.build(request.data)
            self._service.change_password(request.user, dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)
