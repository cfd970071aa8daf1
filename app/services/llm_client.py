"""
Model gateway: sends a prompt and an optional photo to the vision-language model.

Backends:
- groq: OpenAI-compatible chat completions over HTTP (default in production)
- bedrock: AWS Bedrock runtime (optional, needs aioboto3)
- stub: canned responses for development and tests
"""
from typing import Any, Dict, List, Optional
import json
import logging
import re

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when the model provider is unreachable or reports an error."""
    pass


class ModelGateway:
    """
    Thin wrapper around the remote model. Returns raw text and never parses it.

    Usage:
        gateway = ModelGateway()
        text = await gateway.send(prompt, image_b64)
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            mode: Backend name, defaults to LLM_MODE from settings
            transport: Custom httpx transport (used by tests)
        """
        self.mode = (mode or settings.LLM_MODE).lower()
        self.timeout = settings.LLM_TIMEOUT_S
        self._transport = transport
        self._bedrock_helper = None

        if self.mode == "bedrock":
            from app.services.helpers.bedrock_helper import BedrockHelper, BedrockUnavailable
            try:
                self._bedrock_helper = BedrockHelper()
                logger.info("ModelGateway initialized with Bedrock backend")
            except BedrockUnavailable as e:
                logger.warning(f"Bedrock not available ({e}), using stub mode")
                self.mode = "stub"
        elif self.mode not in ("groq", "stub"):
            logger.warning(f"Unknown LLM_MODE '{self.mode}', using stub mode")
            self.mode = "stub"

    async def send(self, prompt: str, image_b64: Optional[str] = None) -> str:
        """
        Send a prompt (and optional base64 JPEG) and return the raw model text.

        Returns:
            Model text, or "" when the provider answered without content

        Raises:
            GatewayError: Provider error, transport failure or timeout
        """
        logger.info(f"Sending prompt to {self.mode} ({len(prompt)} chars, image={'yes' if image_b64 else 'no'})")

        if self.mode == "groq":
            return await self._send_groq(prompt, image_b64)
        if self.mode == "bedrock":
            return await self._bedrock_helper.send(prompt, image_b64)
        return self._send_stub(prompt, image_b64)

    # ─────────────────────────────────────────────────────
    # Groq (OpenAI-compatible)
    # ─────────────────────────────────────────────────────

    def _build_messages(self, prompt: str, image_b64: Optional[str]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        if image_b64:
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:image/jpeg;base64,{image_b64}"},
            })
        content.append({"type": "text", "text": prompt})
        return [{"role": "user", "content": content}]

    async def _send_groq(self, prompt: str, image_b64: Optional[str]) -> str:
        if not settings.GROQ_API_KEY:
            raise GatewayError("GROQ_API_KEY is not configured")

        payload = {
            "model": settings.GROQ_MODEL,
            "messages": self._build_messages(prompt, image_b64),
            "temperature": settings.LLM_TEMPERATURE,
            "max_tokens": settings.LLM_MAX_TOKENS,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.GROQ_API_KEY}",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(settings.GROQ_API_URL, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise GatewayError(f"Model request timed out after {self.timeout:.0f}s") from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Model request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            raise GatewayError(f"Model provider returned HTTP {response.status_code}")

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            raise GatewayError(message or json.dumps(error))

        if response.status_code >= 400:
            raise GatewayError(f"Model provider returned HTTP {response.status_code}")

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    # ─────────────────────────────────────────────────────
    # Stub
    # ─────────────────────────────────────────────────────

    def _send_stub(self, prompt: str, image_b64: Optional[str]) -> str:
        """Deterministic replies shaped like real model output, fences and all."""
        if '"actionNeeded"' in prompt:
            return json.dumps({
                "status": "MONITORING",
                "assessment": "New leaves look healthy.\nOld lesions have dried out.",
                "actionNeeded": "Repeat the spray once more after 7 days.",
            }).replace("\\n", "\n")

        if '"sevenDayPlan"' in prompt:
            crop_match = re.search(r"Crop: ([^|\n]+)", prompt)
            crop = crop_match.group(1).strip() if crop_match else "Tomato"
            return (
                "```json\n"
                "{\"crop\": \"" + crop + "\", \"disease\": \"Early Blight\", \"confidence\": 82,"
                " \"severity\": \"Moderate\","
                " \"description\": \"Concentric brown spots on older leaves.\nCaused by Alternaria solani.\","
                " \"symptoms\": [\"Brown spots with rings\", \"Yellowing around spots\", \"Leaf drop\"],"
                " \"causes\": \"Warm humid weather and infected debris.\","
                " \"chemicalTreatment\": {\"pesticide\": \"Mancozeb 75% WP\", \"dosage\": \"2 g per litre\","
                " \"method\": \"Foliar spray\", \"frequency\": \"Every 10 days\"},"
                " \"organicTreatment\": \"Spray neem oil 5 ml per litre.\","
                " \"soilCare\": \"Add compost and avoid waterlogging.\","
                " \"localRecommendation\": \"Buy from the nearest Krishi Seva Kendra.\","
                " \"govtScheme\": \"PMFBY\","
                " \"sevenDayPlan\": [{\"day\": 1, \"action\": \"Remove infected leaves\"},"
                " {\"day\": 2, \"action\": \"Spray Mancozeb\"}, {\"day\": 3, \"action\": \"Check spread\"}],"
                " \"warning\": \"Rain in the next days can spread the disease.\","
                " \"voiceScript\": \"Your crop has early blight. Spray Mancozeb and remove infected leaves.\"}\n"
                "```"
            )

        return "Keep the field clean and monitor the crop every morning. Contact your local Krishi Vigyan Kendra if spots spread."
