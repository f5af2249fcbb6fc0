from django.contrib import admin

from roster.models import CoreMember, Event, Registration


class RegistrationInline(admin.TabularInline):
    model = Registration
    extra = 0
    ordering = ["container", "position"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "scope", "kind", "starts_at", "capacity", "reminder_sent_at"]
    list_filter = ["kind", "scope"]
    search_fields = ["title", "location", "scope"]
    readonly_fields = ["version"]
    inlines = [RegistrationInline]

    def save_model(self, request, obj, form, change):
        if change:
            obj.version += 1
        super().save_model(request, obj, form, change)


@admin.register(CoreMember)
class CoreMemberAdmin(admin.ModelAdmin):
    list_display = ["subject", "display_name", "created_at"]
    search_fields = ["subject", "display_name"]
