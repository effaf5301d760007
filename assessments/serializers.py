from rest_framework import serializers

# --- Request payloads ---

class ExamChoiceSerializer(serializers.Serializer):
    # Optional: the participant's assignment decides when omitted
    exam_id = serializers.IntegerField(required=False, min_value=1)

class AnswerSubmitSerializer(ExamChoiceSerializer):
    """Any client-sent correctness flag is dropped; the server grades every answer."""
    question_id = serializers.IntegerField(min_value=1)
    selected_option = serializers.CharField(max_length=1, trim_whitespace=True)

class BulkAnswerItemSerializer(serializers.Serializer):
    question_id = serializers.IntegerField(min_value=1)
    selected_option = serializers.CharField(max_length=1, trim_whitespace=True)

class BulkAnswerSubmitSerializer(ExamChoiceSerializer):
    answers = BulkAnswerItemSerializer(many=True, allow_empty=False)

# --- Responses ---

class ScoreResultSerializer(serializers.Serializer):
    total_questions = serializers.IntegerField()
    answered = serializers.IntegerField()
    correct = serializers.IntegerField()
    wrong = serializers.IntegerField()
    unanswered = serializers.IntegerField()
    percentage = serializers.FloatField()

class EnterResultSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()
    state = serializers.CharField()
    gate = serializers.CharField()
    login_at = serializers.DateTimeField(allow_null=True)
    server_time = serializers.DateTimeField()
    seconds_until_start = serializers.IntegerField(allow_null=True)
    seconds_remaining = serializers.IntegerField(allow_null=True)

class AnswerResultSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    ordinal = serializers.IntegerField()
    selected_option = serializers.CharField()
    is_correct = serializers.BooleanField()
    answered_at = serializers.DateTimeField()

class FinishResultSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()
    state = serializers.CharField()
    submitted_at = serializers.DateTimeField()
    already_submitted = serializers.BooleanField()
    result = ScoreResultSerializer()

class SessionStatusSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField(allow_null=True)
    state = serializers.CharField()
    login_at = serializers.DateTimeField(allow_null=True)
    submitted_at = serializers.DateTimeField(allow_null=True)
    result = ScoreResultSerializer(allow_null=True)

class SheetQuestionSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    ordinal = serializers.IntegerField()
    text = serializers.CharField()
    option_a = serializers.CharField(allow_blank=True)
    option_b = serializers.CharField(allow_blank=True)
    option_c = serializers.CharField(allow_blank=True)
    option_d = serializers.CharField(allow_blank=True)
    option_e = serializers.CharField(allow_blank=True)
    selected_option = serializers.CharField(allow_null=True)
    answered = serializers.BooleanField()

class QuestionSheetSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()
    server_time = serializers.DateTimeField()
    seconds_remaining = serializers.IntegerField()
    total_questions = serializers.IntegerField()
    questions = SheetQuestionSerializer(many=True)

class WindowCheckSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()
    title = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    server_time = serializers.DateTimeField()
    gate = serializers.CharField()
    state = serializers.CharField()
    seconds_until_start = serializers.IntegerField(allow_null=True)
    seconds_remaining = serializers.IntegerField(allow_null=True)
