from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid
from pydantic import BaseModel, StrictBool, StrictStr, ValidationError, field_validator


class QuestionAnswerSchema(BaseModel):
    """A yes/no answer with optional free-text details."""

    value: Optional[StrictBool] = None
    details: StrictStr = ""


class AssessmentSaveSchema(BaseModel):
    """
    Schema for saving a patient's medical assessment.

    ``data`` is stored as-is apart from ``questions``: every answer there must
    be ``{"value": true|false|null, "details": "..."}`` and is stored in that
    normalised form.
    """

    patient_id: uuid.UUID
    data: Dict[str, Any]

    @field_validator("data")
    @classmethod
    def validate_questions(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        questions = v.get("questions")
        if questions is None:
            return v
        if not isinstance(questions, dict):
            raise ValueError("questions must be an object keyed by question id")

        answers = {}
        for key, answer in questions.items():
            if not isinstance(answer, dict):
                raise ValueError(f"Answer for '{key}' must be an object")
            try:
                answers[key] = QuestionAnswerSchema.model_validate(answer).model_dump()
            except ValidationError as e:
                raise ValueError(f"Invalid answer for '{key}': {e.errors()[0]['msg']}")
        return {**v, "questions": answers}


class AssessmentResponseSchema(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    data: Dict[str, Any]
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ============= Questionnaire Definition =============
class QuestionSchema(BaseModel):
    key: str
    label: str


class QuestionnaireSectionSchema(BaseModel):
    section: str
    fields: List[QuestionSchema]
    questions: List[QuestionSchema]


class QuestionnaireSchema(BaseModel):
    sections: List[QuestionnaireSectionSchema]
