from django.contrib import admin

from .models import PlatformPolicy


@admin.register(PlatformPolicy)
class PlatformPolicyAdmin(admin.ModelAdmin):
    list_display = ("admin_deduction_rate", "auto_confirm_delay_hours", "updated_at")

    def has_add_permission(self, request):  # type: ignore
        return not PlatformPolicy.objects.exists()
