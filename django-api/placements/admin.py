from django.contrib import admin

from placements.models import Application, ApplicationEvent, Candidate, Drive, Offer, Student


class CandidateInline(admin.TabularInline):
    model = Candidate
    extra = 0


class ApplicationEventInline(admin.TabularInline):
    model = ApplicationEvent
    extra = 0
    can_delete = False
    readonly_fields = ["sequence", "status", "at", "actor_role", "actor_id"]


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ["name", "university", "course", "batch", "cgpa", "is_placed"]
    list_filter = ["university", "is_placed", "verification_status"]
    search_fields = ["name", "email"]


@admin.register(Drive)
class DriveAdmin(admin.ModelAdmin):
    list_display = ["title", "company", "university", "status", "drive_date"]
    list_filter = ["status", "university"]
    search_fields = ["title", "company"]
    inlines = [CandidateInline]


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ["student", "drive", "status", "updated_at"]
    list_filter = ["status", "drive"]
    readonly_fields = ["status"]
    inlines = [ApplicationEventInline]


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    list_display = ["student", "drive", "compensation", "status", "expires_at"]
    list_filter = ["status", "drive"]
    readonly_fields = ["status"]
