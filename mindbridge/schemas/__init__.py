"""
MindBridge Schemas.

Pydantic models for request validation.
"""

from mindbridge.schemas.circles import *
from mindbridge.schemas.messages import *
from mindbridge.schemas.friends import *
from mindbridge.schemas.wellbeing import *
