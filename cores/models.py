from django.db import models
from django.conf import settings


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('ENTER', 'Entered Exam'),
        ('SUBMIT', 'Exam Submitted'),
        ('AUTO_SUBMIT', 'Expired Exam Finalized'),
    ]

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., ExamSession")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of the change")
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    @classmethod
    def record(cls, actor_id, action, target, details=''):
        return cls.objects.create(
            actor_id=actor_id,
            action=action,
            target_model=type(target).__name__,
            target_object_id=str(target.pk),
            details=details,
        )

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"
