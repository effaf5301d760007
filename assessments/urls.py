from django.urls import path
from .views import (
    AnswerView,
    BulkSubmitAnswerView,
    EnterExamView,
    ExamWindowView,
    FinishExamView,
    QuestionDetailView,
    QuestionSheetView,
    SessionResultView,
    SessionStatusView,
)

urlpatterns = [
    # --- Participant Exam Flow ---
    path('session/window/', ExamWindowView.as_view(), name='session-window'),
    path('session/enter/', EnterExamView.as_view(), name='session-enter'),
    path('session/questions/', QuestionSheetView.as_view(), name='session-questions'),
    path('session/questions/<int:ordinal>/', QuestionDetailView.as_view(), name='session-question'),
    path('session/answers/', AnswerView.as_view(), name='session-answers'),
    path('session/answers/bulk/', BulkSubmitAnswerView.as_view(), name='session-answers-bulk'),
    path('session/finish/', FinishExamView.as_view(), name='session-finish'),
    path('session/status/', SessionStatusView.as_view(), name='session-status'),

    # --- Admin Review ---
    path('admin/sessions/<int:pk>/result/', SessionResultView.as_view(), name='session-result'),
]
