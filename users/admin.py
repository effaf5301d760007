from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class ParticipantAdmin(UserAdmin):
    list_display = ('username', 'role', 'assigned_exam', 'score', 'is_staff')
    list_filter = ('role', 'assigned_exam', 'is_staff')
    fieldsets = UserAdmin.fieldsets + (
        ('Exam', {'fields': ('role', 'assigned_exam', 'score')}),
    )
    readonly_fields = ('score',)
