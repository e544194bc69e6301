from .admin_users import UpdatePermissionsView, UserListView
from .auth import RequestResetView, ResetPasswordView, SigninView, SignoutView, SignupView
from .me import MeView

__all__ = [
    "SignupView",
    "SigninView",
    "SignoutView",
    "RequestResetView",
    "ResetPasswordView",
    "MeView",
    "UserListView",
    "UpdatePermissionsView",
]
