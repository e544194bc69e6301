from django.contrib import admin, messages

from permissions.exceptions import ServiceError

from .models import ChargeAttempt, Order, OrderLine
from .services.reconciliation import resolve_charge_attempt

# =====================================================
# ORDER LINE INLINE (READ-ONLY)
# =====================================================


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    can_delete = False
    readonly_fields = (
        "title",
        "price",
        "quantity",
        "image",
        "created_at",
    )
    exclude = ("description", "large_image", "user")

    def has_add_permission(self, request, obj=None):
        return False


# =====================================================
# ORDER ADMIN (IMMUTABLE)
# =====================================================


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "total", "currency", "charge_id", "created_at")
    readonly_fields = ("id", "user", "total", "currency", "charge_id", "created_at")
    search_fields = ("id", "user__email", "charge_id")
    list_filter = ("currency", "created_at")
    inlines = [OrderLineInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =====================================================
# CHARGE ATTEMPT ADMIN (RECONCILIATION)
# =====================================================


@admin.register(ChargeAttempt)
class ChargeAttemptAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "status",
        "amount",
        "amount_charged",
        "currency",
        "charge_id",
        "order",
        "created_at",
    )
    list_filter = ("status", "created_at")
    search_fields = ("id", "user__email", "charge_id")
    readonly_fields = [f.name for f in ChargeAttempt._meta.fields]
    actions = ["resolve_selected"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Resolve selected attempts (re-opens their cart snapshot)")
    def resolve_selected(self, request, queryset):
        resolved = 0
        for attempt in queryset:
            try:
                resolve_charge_attempt(
                    attempt.pk,
                    note="Resolved from admin",
                    actor=request.user.email,
                )
            except ServiceError as exc:
                self.message_user(request, f"{attempt.pk}: {exc.message}", level=messages.WARNING)
                continue
            resolved += 1

        self.message_user(request, f"Resolved {resolved} attempt(s).", level=messages.SUCCESS)
