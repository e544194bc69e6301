# users/urls.py

from django.urls import path

from .views import (
    MeView,
    RequestResetView,
    ResetPasswordView,
    SigninView,
    SignoutView,
    SignupView,
    UpdatePermissionsView,
    UserListView,
)

app_name = "users"

urlpatterns = [
    # ---------------- PUBLIC AUTH ----------------
    path("signup/", SignupView.as_view(), name="signup"),
    path("signin/", SigninView.as_view(), name="signin"),
    path("signout/", SignoutView.as_view(), name="signout"),
    path("password/reset/request/", RequestResetView.as_view(), name="request-reset"),
    path("password/reset/", ResetPasswordView.as_view(), name="reset-password"),
    # ---------------- AUTHENTICATED ----------------
    path("me/", MeView.as_view(), name="me"),
    # ---------------- ADMIN ----------------
    path("users/", UserListView.as_view(), name="user-list"),
    path("users/<uuid:user_id>/permissions/", UpdatePermissionsView.as_view(), name="update-permissions"),
]
