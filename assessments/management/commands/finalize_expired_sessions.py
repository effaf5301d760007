from django.core.management.base import BaseCommand

from assessments.services import finalize_expired_sessions


class Command(BaseCommand):
    help = 'Submits every in-progress exam session whose exam window has closed'

    def handle(self, *args, **options):
        finalized = finalize_expired_sessions()
        for outcome in finalized:
            self.stdout.write(
                f"Exam {outcome.exam_id}: finalized at {outcome.submitted_at.isoformat()} "
                f"with {outcome.result.percentage}%"
            )
        self.stdout.write(self.style.SUCCESS(f"Finalized {len(finalized)} expired session(s)"))
