from typing import Optional, Literal
from pydantic import BaseModel, Field, model_validator


class SpecialistInput(BaseModel):
    """Arguments the concierge passes to any specialist."""

    input: str = Field(
        ...,
        description="A self-contained request for the specialist, including every detail the user has given.",
    )


class SpecialistResponse(BaseModel):
    """A specialist's structured reply: a finished answer, or a question for the user."""

    status: Literal["answer", "clarification"] = Field(
        ...,
        description="Set to 'answer' when the request could be handled, or 'clarification' if information from the user is missing.",
    )
    answer: Optional[str] = Field(
        None,
        description="The full answer for the user. This MUST be populated if status is 'answer'.",
    )
    clarification_question: Optional[str] = Field(
        None,
        description="A short question asking the user for the missing information. This MUST be populated if status is 'clarification'.",
    )

    @model_validator(mode="after")
    def check_fields(self):
        if self.status == "answer" and not (self.answer and self.answer.strip()):
            raise ValueError("Field 'answer' is required when status is 'answer'.")
        if self.status == "clarification" and not (
            self.clarification_question and self.clarification_question.strip()
        ):
            raise ValueError("Field 'clarification_question' is required when status is 'clarification'.")
        return self
