from django.urls import path

from modules.accounts.views import ChangePasswordView, MeView, RegisterView

urlpatterns = [
    path("api/v1/auth/register/", RegisterView.as_view(), name="register"),
    path("api/v1/me", MeView.as_view(), name="me"),
    path("api/v1/me/password/", ChangePasswordView.as_view(), name="change_password"),
]
