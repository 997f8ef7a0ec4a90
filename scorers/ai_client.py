"""OpenAI-backed judgment client for rubric scoring."""

import logging
from typing import Any, Optional

from openai import OpenAI

from config.settings import AIConfig, get_ai_config

logger = logging.getLogger(__name__)


class AIClient:
    """Wrapper for judgment calls to OpenAI (or a compatible endpoint)."""

    def __init__(self, config: Optional[AIConfig] = None, client: Optional[Any] = None):
        """
        Args:
            config: judgment-service settings; defaults to the cached AIConfig
            client: a ready OpenAI-compatible client; built from config when omitted
        """
        self.config = config or get_ai_config()
        self.client = client

        if self.client is None:
            if self.config.openai_api_key:
                try:
                    self.client = OpenAI(
                        api_key=self.config.openai_api_key,
                        timeout=self.config.timeout_seconds,
                        max_retries=self.config.max_retries,
                    )
                    logger.info(f"Initialized OpenAI client (model={self.config.openai_model})")
                except Exception as e:
                    logger.error(f"Failed to initialize OpenAI client: {e}")
            else:
                logger.warning("OpenAI API key not set — judgment scoring will be disabled.")

    @property
    def available(self) -> bool:
        return self.client is not None

    # ------------------------------------------------------------------
    # Judgment call
    # ------------------------------------------------------------------
    def request_judgment(self, request) -> str:
        """
        Send one JudgmentRequest and return the raw reply text.

        Errors raised by the SDK (network, auth, timeout) are not caught here.
        """
        if not self.client:
            raise RuntimeError("AI client unavailable: set OPENAI_API_KEY or pass a client.")

        logger.debug(
            f"→ Judgment request (type={request.task_type}, "
            f"range={request.expected_score_range})"
        )

        response = self.client.chat.completions.create(
            model=self.config.openai_model,
            messages=[
                {"role": "system", "content": request.system_instructions},
                {"role": "user", "content": request.render_user_prompt()},
            ],
            response_format={"type": "json_object"},
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            timeout=self.config.timeout_seconds,
        )

        content = str(response.choices[0].message.content or "").strip()
        logger.debug(f"✓ Judgment reply received ({len(content)} chars)")
        return content
