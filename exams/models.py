# cbt_platform/exams/models.py
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

class Exam(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    # Absolute instants (stored in UTC); the window is [starts_at, ends_at)
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(starts_at__lt=F('ends_at')),
                name='exam_starts_before_it_ends',
            ),
        ]

    def clean(self):
        if self.starts_at and self.ends_at and self.starts_at >= self.ends_at:
            raise ValidationError({'ends_at': "The exam must end after it starts."})

    def __str__(self):
        return self.title

class Question(models.Model):
    class Option(models.TextChoices):
        A = "a", "A"
        B = "b", "B"
        C = "c", "C"
        D = "d", "D"
        E = "e", "E"

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)
    ordinal = models.PositiveIntegerField(help_text="1-based position of the question within its exam")

    text = models.TextField()
    option_a = models.TextField(blank=True)
    option_b = models.TextField(blank=True)
    option_c = models.TextField(blank=True)
    option_d = models.TextField(blank=True)
    option_e = models.TextField(blank=True)

    correct_option = models.CharField(max_length=1, choices=Option.choices)

    class Meta:
        ordering = ['exam', 'ordinal']
        constraints = [
            models.UniqueConstraint(fields=['exam', 'ordinal'], name='question_ordinal_unique_per_exam'),
        ]

    @property
    def options(self):
        return {
            'a': self.option_a,
            'b': self.option_b,
            'c': self.option_c,
            'd': self.option_d,
            'e': self.option_e,
        }

    def save(self, *args, **kwargs):
        self.correct_option = (self.correct_option or '').lower()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.ordinal}. {self.text[:50]}"
