"""
HuggingFace Inference API Client for ChatBond
Optional conversation summarization with retries and backoff
"""

import time
import logging
from typing import List, Any, Optional
import requests

from . import config

logger = logging.getLogger(__name__)


class HFSummarizer:
    """
    Summarize a conversation segment through the HF Inference router.

    Never raises to callers: any failure returns None so the caller can fall
    back to the keyword summary.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        model: Optional[str] = None,
        mock_mode: bool = False,
    ):
        """
        Initialize summarizer.

        Args:
            token: HF API token (default from config)
            model: Summarization model identifier (default from config)
            mock_mode: Return placeholder summaries without network access
        """
        self.token = token or config.HF_TOKEN
        if not self.token and not mock_mode:
            raise ValueError("HF_TOKEN not set - add to .env file or pass as argument")

        self.model = model or config.SUMMARIZATION_MODEL
        self.timeout = config.API_TIMEOUT
        self.max_retries = config.MAX_RETRIES
        self.mock_mode = mock_mode

        logger.info(f"HFSummarizer initialized (model={self.model}, mock={mock_mode})")

    @property
    def url(self) -> str:
        return f"{config.HF_API_BASE}/{self.model}"

    def prepare_text(self, messages: List[str]) -> str:
        text = " ".join(m for m in messages if isinstance(m, str) and m)
        return text[: config.SUMMARY_MAX_INPUT_CHARS]

    def summarize(self, messages: List[str]) -> Optional[str]:
        """Return a summary for the given message bodies, or None."""
        text = self.prepare_text(messages)
        if not text:
            return None

        if self.mock_mode:
            return f"Mock summary of {len(messages)} messages"

        return self._api_query(text)

    def _api_query(self, text: str) -> Optional[str]:
        headers = {"Authorization": f"Bearer {self.token}"}
        payload = {
            "inputs": text,
            "parameters": {
                "max_length": config.SUMMARY_MAX_LENGTH,
                "min_length": config.SUMMARY_MIN_LENGTH,
            },
        }

        last_error = None

        for attempt in range(self.max_retries):
            try:
                response = requests.post(self.url, headers=headers, json=payload, timeout=self.timeout)

                if response.status_code == 200:
                    return self._extract_summary(response.json())

                elif response.status_code >= 500:
                    # Server error - retry with backoff
                    wait_time = 2 ** attempt
                    logger.warning(f"Server error {response.status_code}, retrying in {wait_time}s (attempt {attempt+1}/{self.max_retries})")
                    time.sleep(wait_time)
                    last_error = f"Server error: {response.status_code}"
                    continue

                elif response.status_code == 429:
                    wait_time = 5 * (attempt + 1)
                    logger.warning(f"Rate limited, waiting {wait_time}s")
                    time.sleep(wait_time)
                    last_error = "Rate limited"
                    continue

                else:
                    # 4xx other than 429 will not improve on retry
                    logger.error(f"API error {response.status_code}: {response.text[:200]}")
                    return None

            except requests.Timeout:
                logger.warning(f"Timeout on attempt {attempt+1}/{self.max_retries}")
                last_error = "Timeout"
                continue

            except (requests.RequestException, ValueError) as e:
                logger.error(f"Summarization request failed: {e}")
                return None

        logger.error(f"All retries failed for {self.model}: {last_error}")
        return None

    def _extract_summary(self, result: Any) -> Optional[str]:
        """
        Summarization models return [{"summary_text": "..."}]; some
        deployments return the bare dict.
        """
        if isinstance(result, list) and result:
            result = result[0]
        if isinstance(result, dict):
            summary = result.get("summary_text") or result.get("generated_text")
            if isinstance(summary, str) and summary.strip():
                return summary.strip()

        logger.warning(f"Unexpected response format from {self.model}: {str(result)[:200]}")
        return None


if __name__ == "__main__":
    summarizer = HFSummarizer(mock_mode=True)
    print(summarizer.summarize(["Are we still on for dinner?", "Yes, 8pm at the usual place"]))
