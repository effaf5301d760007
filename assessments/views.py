from rest_framework import permissions, serializers, status, views
from rest_framework.response import Response

from users.permissions import IsExamAdmin

from . import services, store
from .exceptions import (
    AlreadySubmitted,
    ExamNotAssigned,
    ExamNotFound,
    ExamNotStarted,
    InvalidOption,
    PersistenceFailure,
    QuestionNotInExam,
    SessionError,
    SessionNotInProgress,
    WindowClosed,
)
from .models import ExamSession
from .serializers import (
    AnswerResultSerializer,
    AnswerSubmitSerializer,
    BulkAnswerSubmitSerializer,
    EnterResultSerializer,
    ExamChoiceSerializer,
    FinishResultSerializer,
    QuestionSheetSerializer,
    ScoreResultSerializer,
    SessionStatusSerializer,
    SheetQuestionSerializer,
    WindowCheckSerializer,
)
from .windows import OPEN

ERROR_STATUS = {
    InvalidOption: status.HTTP_400_BAD_REQUEST,
    ExamNotAssigned: status.HTTP_403_FORBIDDEN,
    WindowClosed: status.HTTP_403_FORBIDDEN,
    ExamNotStarted: status.HTTP_403_FORBIDDEN,
    ExamNotFound: status.HTTP_404_NOT_FOUND,
    QuestionNotInExam: status.HTTP_404_NOT_FOUND,
    SessionNotInProgress: status.HTTP_409_CONFLICT,
    AlreadySubmitted: status.HTTP_409_CONFLICT,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _datetime(value):
    if value is None:
        return None
    return serializers.DateTimeField().to_representation(value)


def session_error_response(exc):
    """Rejection body: always the current state, plus the recorded result once there is one."""
    body = {
        "error": exc.message,
        "code": exc.code,
        "state": exc.state,
        "submitted_at": _datetime(exc.submitted_at),
        "result": None,
    }
    if exc.result is not None:
        body["result"] = ScoreResultSerializer(exc.result).data
    return Response(body, status=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST))


class SessionView(views.APIView):
    """Base for participant exam-session endpoints. Identity comes from the token only."""
    permission_classes = [permissions.IsAuthenticated]

    def resolve_exam(self, request, data):
        serializer = ExamChoiceSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        return store.resolve_exam_id(request.user.id, serializer.validated_data.get('exam_id'))

    def handle_exception(self, exc):
        if isinstance(exc, SessionError):
            return session_error_response(exc)
        return super().handle_exception(exc)


class EnterExamView(SessionView):
    """
    Participant enters (or re-enters) their exam.
    Opens the session when the window is open; otherwise reports the gate.
    """

    def post(self, request):
        exam_id = self.resolve_exam(request, request.data)
        outcome = services.enter(request.user.id, exam_id)
        code = status.HTTP_200_OK if outcome.gate == OPEN else status.HTTP_403_FORBIDDEN
        return Response(EnterResultSerializer(outcome).data, status=code)


class QuestionSheetView(SessionView):
    def get(self, request):
        exam_id = self.resolve_exam(request, request.query_params)
        sheet = services.get_question_sheet(request.user.id, exam_id)
        return Response(QuestionSheetSerializer(sheet).data)


class ExamWindowView(SessionView):
    """
    Assigned exam details and where the clock stands against its window.
    Read-only: checking the time never starts the session.
    """

    def get(self, request):
        exam_id = self.resolve_exam(request, request.query_params)
        window = services.check_window(request.user.id, exam_id)
        return Response(WindowCheckSerializer(window).data)


class QuestionDetailView(SessionView):
    def get(self, request, ordinal):
        exam_id = self.resolve_exam(request, request.query_params)
        question = services.get_question(request.user.id, exam_id, ordinal)
        return Response(SheetQuestionSerializer(question).data)


class AnswerView(SessionView):
    """
    GET: the participant's saved answers.
    POST: save or change one answer while the session is in progress.
    """

    def get(self, request):
        exam_id = self.resolve_exam(request, request.query_params)
        answers = services.list_answers(request.user.id, exam_id)
        return Response({
            "exam_id": exam_id,
            "total_answers": len(answers),
            "answers": AnswerResultSerializer(answers, many=True).data,
        })

    def post(self, request):
        serializer = AnswerSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        exam_id = store.resolve_exam_id(request.user.id, data.get('exam_id'))
        answer = services.submit_answer(request.user.id, exam_id, data['question_id'], data['selected_option'])
        return Response(AnswerResultSerializer(answer).data)


class BulkSubmitAnswerView(SessionView):
    """Periodic auto-save from the client. Payload: { "answers": [ {"question_id": 1, "selected_option": "a"}, ... ] }"""

    def post(self, request):
        serializer = BulkAnswerSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        exam_id = store.resolve_exam_id(request.user.id, data.get('exam_id'))
        pairs = [(item['question_id'], item['selected_option']) for item in data['answers']]
        answers = services.submit_answers(request.user.id, exam_id, pairs)
        return Response({
            "saved_count": len(answers),
            "answers": AnswerResultSerializer(answers, many=True).data,
        })


class FinishExamView(SessionView):
    """
    Participant submits the exam for grading.
    A repeated submit replays the recorded result instead of failing.
    """

    def post(self, request):
        exam_id = self.resolve_exam(request, request.data)
        outcome = services.finish(request.user.id, exam_id)
        return Response(FinishResultSerializer(outcome).data)


class SessionStatusView(SessionView):
    def get(self, request):
        serializer = ExamChoiceSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        requested = serializer.validated_data.get('exam_id')
        try:
            exam_id = store.resolve_exam_id(request.user.id, requested)
        except ExamNotAssigned:
            # No session for that exam, so it is in the default state
            default = services.SessionStatus(exam_id=requested, state=ExamSession.State.NOT_LOGGED_IN)
            return Response(SessionStatusSerializer(default).data)

        session_status = services.get_session_status(request.user.id, exam_id)
        return Response(SessionStatusSerializer(session_status).data)


# --- ADMIN VIEWS ---

class SessionResultView(views.APIView):
    """Admin review of a session's score. Never modifies the session."""
    permission_classes = [IsExamAdmin]

    def get(self, request, pk):
        try:
            session = ExamSession.objects.select_related('user', 'exam').get(pk=pk)
        except ExamSession.DoesNotExist:
            return Response({"error": "Session not found"}, status=status.HTTP_404_NOT_FOUND)

        result = services.inspect_result(session.pk)
        return Response({
            "session_id": session.pk,
            "participant": session.user.username,
            "exam_id": session.exam_id,
            "exam_title": session.exam.title,
            "state": session.state,
            "login_at": _datetime(session.login_at),
            "submitted_at": _datetime(session.submitted_at),
            "is_final": session.is_submitted,
            "result": ScoreResultSerializer(result).data,
        })
