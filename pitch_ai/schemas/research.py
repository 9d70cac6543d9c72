from pydantic import BaseModel
from typing import Optional


class JobBriefRequest(BaseModel):
    company: Optional[str] = None
    title: Optional[str] = None


class TechAnswerRequest(BaseModel):
    question: Optional[str] = None
