"""
Anthropic vision model adapter.

Sends one page image with the extraction instruction to Claude and returns
the raw text reply. Recovery of structure from that text is not done here;
this adapter only translates transport problems into UpstreamFailure.
"""

import base64
import os
from typing import Any, Optional

import anthropic
import structlog

from statementlens_core.exceptions import ConfigurationError, UpstreamFailure

from statementlens_agents.config import LLMConfig

logger = structlog.get_logger()


def detect_image_media_type(image: bytes) -> str:
    """Media type of an encoded page image from its magic bytes."""
    if image.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if image[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if image[:4] == b"RIFF" and image[8:12] == b"WEBP":
        return "image/webp"
    raise UpstreamFailure(
        "Page image is not a PNG, JPEG, GIF or WEBP payload",
        service="anthropic",
        operation="extract",
        recoverable=False,
    )


class AnthropicVisionModel:
    """
    Use the Claude Messages API with image input for page extraction.

    Satisfies ``VisionModelProtocol``.
    """

    SERVICE = "anthropic"

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize the adapter.

        Args:
            config: Model settings. Defaults to LLMConfig() from the environment.
            client: Pre-built ``anthropic.AsyncAnthropic`` (or compatible) client.

        Raises:
            ConfigurationError: If no client is given and no API key is available.
        """
        self.config = config or LLMConfig()

        if client is None:
            api_key = self.config.api_key or os.getenv("ANTHROPIC_API_KEY")
            if not api_key:
                raise ConfigurationError(
                    "No Anthropic API key provided. Set STATEMENTLENS_LLM_API_KEY "
                    "or ANTHROPIC_API_KEY.",
                    config_key="STATEMENTLENS_LLM_API_KEY",
                    expected="Valid Anthropic API key",
                )
            client = anthropic.AsyncAnthropic(
                api_key=api_key, timeout=self.config.timeout
            )
        self.client = client

    async def extract(self, image: bytes, instruction: str) -> str:
        """Return the model's raw reply for one page image."""
        media_type = detect_image_media_type(image)
        try:
            response = await self.client.messages.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": media_type,
                                    "data": base64.b64encode(image).decode("ascii"),
                                },
                            },
                            {"type": "text", "text": instruction},
                        ],
                    }
                ],
            )
        except anthropic.APIStatusError as e:
            raise UpstreamFailure(
                f"Model API error: {e.status_code} - {e.message}",
                service=self.SERVICE,
                operation="extract",
                upstream_error=str(e),
                recoverable=e.status_code in (408, 429, 500, 502, 503, 529),
            ) from e
        except anthropic.APIError as e:
            raise UpstreamFailure(
                "No response from the model API. Please check connectivity.",
                service=self.SERVICE,
                operation="extract",
                upstream_error=str(e),
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(
            "vision_response_received",
            model=self.config.model,
            response_length=len(text),
            input_tokens=getattr(response.usage, "input_tokens", None),
            output_tokens=getattr(response.usage, "output_tokens", None),
        )
        return text

    async def check_health(self) -> bool:
        """True if the configured model is reachable with these credentials."""
        try:
            await self.client.models.retrieve(self.config.model)
        except anthropic.APIError as e:
            logger.warning("vision_health_check_failed", error=str(e))
            return False
        return True
