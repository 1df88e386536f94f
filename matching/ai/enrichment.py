import os
import json
import logging
from typing import Dict, Optional, Tuple

import openai
from dotenv import load_dotenv

from ..logic.errors import EnrichmentUnavailable
from .prompt_builder import build_system_prompt, build_user_prompt

# Load env vars (if not already loaded)
load_dotenv()

logger = logging.getLogger(__name__)


class OpenAIEnrichmentProvider:
    """EnrichmentProvider backed by an OpenAI chat model."""

    def __init__(self, api_key: Optional[str] = None, client=None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.client = client
        if self.client is None and self.api_key:
            self.client = openai.OpenAI(api_key=self.api_key)

        self.model = os.getenv("ENRICHMENT_MODEL", "gpt-4o-mini")
        self.max_tokens = 50
        self.temperature = 0.0

        # Simple in-memory cache: (user_text, candidate_text) -> similarity
        self.cache: Dict[Tuple[str, str], float] = {}

    @property
    def available(self) -> bool:
        return self.client is not None

    def score_similarity(self, user_text: str, candidate_text: str) -> float:
        """
        Asks the model how relevant the candidate is to the user.
        Raises EnrichmentUnavailable if the API key is missing or any error occurs.
        """
        if not self.client:
            raise EnrichmentUnavailable("OpenAI API key not found")

        key = (user_text, candidate_text)
        if key in self.cache:
            return self.cache[key]

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt()},
                    {"role": "user", "content": build_user_prompt(user_text, candidate_text)}
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"}
            )
            content = response.choices[0].message.content
            if not content:
                raise EnrichmentUnavailable("Empty response from enrichment model")
            similarity = float(json.loads(content)["similarity"])
        except EnrichmentUnavailable:
            raise
        except Exception as e:
            logger.warning(f"Error scoring similarity: {e}")
            raise EnrichmentUnavailable(str(e)) from e

        similarity = max(0.0, min(1.0, similarity))
        self.cache[key] = similarity
        return similarity
