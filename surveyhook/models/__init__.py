"""
Database models - import all models here so Alembic can discover them.
"""
from surveyhook.models.account import Account
from surveyhook.models.survey_response import SurveyResponse

__all__ = [
    "Account",
    "SurveyResponse",
]
