# items/urls.py

"""
ITEMS URLS

Registers catalog routes under /api/items/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from items.views import ItemViewSet

router = DefaultRouter()
router.register(r"", ItemViewSet, basename="items")

app_name = "items"

urlpatterns = [
    path("", include(router.urls)),
]
