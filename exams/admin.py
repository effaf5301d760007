from django.contrib import admin

# Register your models here.
from .models import Exam, Question


class QuestionInline(admin.StackedInline):
    model = Question
    extra = 0


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('title', 'starts_at', 'ends_at')
    inlines = [QuestionInline]


admin.site.register(Question)
