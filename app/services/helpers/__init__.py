"""
Helper modules for service layer.

These helpers contain isolated logic for:
- AWS Bedrock model calls
- JSON recovery from model replies
"""

from app.services.helpers.bedrock_helper import BedrockHelper, BedrockUnavailable
from app.services.helpers.extractor import ParseError, extract_json

__all__ = [
    "BedrockHelper",
    "BedrockUnavailable",
    "ParseError",
    "extract_json",
]
