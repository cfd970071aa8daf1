"""
AWS Bedrock backend for the model gateway.
"""
from typing import Any, Dict, List, Optional
import json
import logging

logger = logging.getLogger(__name__)

try:
    import aioboto3
    from botocore.config import Config
    from botocore.exceptions import BotoCoreError, ClientError
    BOTO3_AVAILABLE = True
except ImportError:
    BOTO3_AVAILABLE = False
    logger.info("AWS SDK not available - Bedrock unavailable")

from app.core.config import settings


class BedrockUnavailable(Exception):
    """Raised when Bedrock service is unavailable or misconfigured."""
    pass


class BedrockHelper:
    """Helper class for AWS Bedrock operations."""

    def __init__(self):
        """Initialize Bedrock client."""
        if not BOTO3_AVAILABLE:
            raise BedrockUnavailable("boto3/aioboto3 not installed")

        if not settings.BEDROCK_REGION or not settings.BEDROCK_MODEL_ID:
            raise BedrockUnavailable("Bedrock not configured (region or model_id missing)")

    def build_body(self, prompt: str, image_b64: Optional[str] = None) -> str:
        """Request body in the format expected by the configured model family."""
        model_id = settings.BEDROCK_MODEL_ID.lower()

        if "claude" in model_id:
            content: List[Dict[str, Any]] = []
            if image_b64:
                content.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": "image/jpeg", "data": image_b64},
                })
            content.append({"type": "text", "text": prompt})
            return json.dumps({
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": settings.LLM_MAX_TOKENS,
                "temperature": settings.LLM_TEMPERATURE,
                "messages": [{"role": "user", "content": content}],
            })

        if "nova" in model_id:
            # Amazon Nova models use different format
            content = []
            if image_b64:
                content.append({"image": {"format": "jpeg", "source": {"bytes": image_b64}}})
            content.append({"text": prompt})
            return json.dumps({
                "messages": [{"role": "user", "content": content}],
                "inferenceConfig": {
                    "max_new_tokens": settings.LLM_MAX_TOKENS,
                    "temperature": settings.LLM_TEMPERATURE,
                    "top_p": 0.9,
                },
            })

        # Text-only models (Titan and others) cannot see the photo
        if image_b64:
            logger.warning(f"Model {settings.BEDROCK_MODEL_ID} is text-only, image dropped")
        return json.dumps({
            "inputText": prompt,
            "textGenerationConfig": {
                "maxTokenCount": settings.LLM_MAX_TOKENS,
                "temperature": settings.LLM_TEMPERATURE,
                "topP": 0.9,
            },
        })

    def client_config(self) -> "Config":
        """Timeouts from LLM_TIMEOUT_S; retries disabled, a failed call surfaces at once."""
        return Config(
            connect_timeout=min(10.0, settings.LLM_TIMEOUT_S),
            read_timeout=settings.LLM_TIMEOUT_S,
            retries={"max_attempts": 1, "mode": "standard"},
        )

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        """Pull the generated text out of a Bedrock response body."""
        if "output" in data and "message" in data["output"]:  # Nova format
            content = data["output"]["message"].get("content", [])
            return content[0].get("text", "") if content else ""
        if "results" in data:  # Titan format
            return data["results"][0].get("outputText", "") if data["results"] else ""
        if "generation" in data:  # Llama format
            return data["generation"] or ""
        if "content" in data:  # Claude format
            content = data.get("content", [])
            return content[0].get("text", "") if content else ""
        return ""

    async def send(self, prompt: str, image_b64: Optional[str] = None) -> str:
        """Invoke the model and return its raw text."""
        from app.services.llm_client import GatewayError

        session = aioboto3.Session()
        try:
            async with session.client(
                "bedrock-runtime",
                region_name=settings.BEDROCK_REGION,
                config=self.client_config(),
            ) as client:
                response = await client.invoke_model(
                    modelId=settings.BEDROCK_MODEL_ID,
                    accept="application/json",
                    contentType="application/json",
                    body=self.build_body(prompt, image_b64),
                )
                raw = await response["body"].read()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Bedrock API error: {e}")
            raise GatewayError(str(e)) from e

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise GatewayError(f"Unreadable Bedrock response: {e}") from e

        if isinstance(data, dict) and data.get("message") and "content" not in data:
            raise GatewayError(data["message"])

        text = self.extract_text(data) if isinstance(data, dict) else ""
        logger.debug(f"Raw Bedrock response (first 500 chars): {text[:500]}")
        return text
