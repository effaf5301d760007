from django.contrib import admin

from .models import ExamSession, StudentAnswer


class StudentAnswerInline(admin.TabularInline):
    model = StudentAnswer
    extra = 0
    readonly_fields = ('question', 'selected_option', 'is_correct', 'answered_at')
    can_delete = False


@admin.register(ExamSession)
class ExamSessionAdmin(admin.ModelAdmin):
    """Sessions are created on first use of the assigned exam; assignment itself lives on the user."""
    list_display = ('user', 'exam', 'state', 'login_at', 'submitted_at', 'score')
    list_filter = ('state', 'exam')
    inlines = [StudentAnswerInline]

    def get_readonly_fields(self, request, obj=None):
        # State and score only ever move through the session lifecycle
        fixed = ('state', 'login_at', 'submitted_at', 'total_questions', 'answered_count',
                 'correct_count', 'wrong_count', 'unanswered_count', 'score')
        if obj is not None:
            return fixed + ('user', 'exam')
        return fixed
