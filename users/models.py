# cbt_platform/users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    class Role(models.TextChoices):
        PARTICIPANT = "participant", "Participant"
        ADMIN = "admin", "Admin"

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.PARTICIPANT)

    # Set by an admin; participants can only ever sit this exam
    assigned_exam = models.ForeignKey(
        'exams.Exam',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='participants',
    )

    # Recorded score, written only when an exam session is finalized
    score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    @property
    def is_exam_admin(self):
        return self.is_staff or self.role == self.Role.ADMIN

    def __str__(self):
        return self.username
