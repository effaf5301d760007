# assessments/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q

from exams.models import Exam, Question

class ExamSession(models.Model):
    """Tracks one participant's progress against one exam."""

    class State(models.TextChoices):
        NOT_LOGGED_IN = "not_logged_in", "Not logged in"
        NOT_STARTED = "not_started", "Not started"
        IN_PROGRESS = "in_progress", "In progress"
        SUBMITTED = "submitted", "Submitted"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name='exam_sessions', on_delete=models.CASCADE)
    exam = models.ForeignKey(Exam, related_name='sessions', on_delete=models.CASCADE)
    state = models.CharField(max_length=20, choices=State.choices, default=State.NOT_LOGGED_IN)

    login_at = models.DateTimeField(null=True, blank=True)  # First entry into the window
    submitted_at = models.DateTimeField(null=True, blank=True)  # Finalization

    # Score breakdown, written once at finalization
    total_questions = models.PositiveIntegerField(null=True, blank=True)
    answered_count = models.PositiveIntegerField(null=True, blank=True)
    correct_count = models.PositiveIntegerField(null=True, blank=True)
    wrong_count = models.PositiveIntegerField(null=True, blank=True)
    unanswered_count = models.PositiveIntegerField(null=True, blank=True)
    score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'exam'], name='one_session_per_participant_exam'),
            models.CheckConstraint(
                condition=(
                    Q(state="submitted", submitted_at__isnull=False)
                    | (~Q(state="submitted") & Q(submitted_at__isnull=True))
                ),
                name='submitted_at_iff_submitted',
            ),
        ]

    @property
    def is_submitted(self):
        return self.state == self.State.SUBMITTED

    def __str__(self):
        return f"{self.user} - {self.exam.title} ({self.state})"

class StudentAnswer(models.Model):
    session = models.ForeignKey(ExamSession, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, related_name='answers', on_delete=models.CASCADE)

    selected_option = models.CharField(max_length=1)
    # Computed against the answer key on every write, never taken from the client
    is_correct = models.BooleanField(default=False)

    answered_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('session', 'question')

    def __str__(self):
        return f"{self.session_id}/{self.question_id}: {self.selected_option}"
