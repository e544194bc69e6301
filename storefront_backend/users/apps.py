# users/apps.py

"""
USERS APP CONFIG

Accounts + identity:
- Custom User model (permission roles stored on the user)
- Credential issue/verify (SimpleJWT)
- Signup / signin / password reset / permission updates
"""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
    verbose_name = "Users"
