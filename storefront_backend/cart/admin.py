from django.contrib import admin

from .models import CartLine


@admin.register(CartLine)
class CartLineAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "item", "quantity", "created_at")
    search_fields = ("user__email", "item__title")
    readonly_fields = ("id", "created_at")
