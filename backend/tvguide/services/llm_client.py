"""
Spoiler-free episode synopses from an Ollama-compatible generate API.

Provides async interface to Ollama's generate endpoint. Every failure
(disabled, timeout, HTTP error, empty answer) surfaces as
UpstreamUnavailable so callers can fall back to the TMDB overview.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from tvguide.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Write a brief, spoiler-free synopsis (2-3 sentences) for this TV episode. "
    "Focus on the setup and premise, not the resolution. Keep it engaging and family-friendly.\n\n"
    "Show: {show_name}\n"
    "Episode: S{season}E{episode} - \"{episode_name}\"\n"
    "Original description: {overview}\n\n"
    "Write only the synopsis, no preamble or labels."
)


def build_prompt(show_name: str, season: int, episode: int, episode_name: str, overview: str) -> str:
    return PROMPT_TEMPLATE.format(
        show_name=show_name,
        season=season,
        episode=episode,
        episode_name=episode_name,
        overview=overview,
    )


class SynopsisGenerator:
    """Async client for the Ollama generate API."""

    def __init__(
        self,
        base_url: str = "http://ollama:11434",
        model: str = "phi3.5:3.8b-mini-instruct-q4_K_M",
        timeout: float = 30.0,
        enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.enabled = enabled
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "SynopsisGenerator":
        return cls(
            base_url=settings.llm_api_base,
            model=settings.llm_model,
            timeout=settings.llm_timeout_seconds,
            enabled=settings.llm_enabled,
        )

    async def generate(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call the generate API and return the raw response dict."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/api/generate",
                    json={
                        "model": self.model,
                        "prompt": prompt,
                        "options": options or {},
                        "stream": False,
                    },
                )
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                logger.error(f"LLM request timeout for model {self.model}: {e}")
                raise UpstreamUnavailable("Synopsis generation timed out", service="llm")
            except httpx.HTTPStatusError as e:
                logger.error(f"LLM HTTP error for model {self.model}: {e}")
                raise UpstreamUnavailable("Synopsis generation failed", service="llm", status=e.response.status_code)
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"LLM request failed for model {self.model}: {e}")
                raise UpstreamUnavailable("Synopsis generation failed", service="llm")

    async def generate_synopsis(self, show_name: str, season: int, episode: int, episode_name: str, overview: str) -> str:
        if not self.enabled:
            raise UpstreamUnavailable("Synopsis generation is disabled", service="llm")

        prompt = build_prompt(show_name, season, episode, episode_name, overview)
        result = await self.generate(prompt, options={"temperature": 0.7, "num_predict": 150})
        text = (result.get("response") or "").strip() if isinstance(result, dict) else ""
        if not text:
            raise UpstreamUnavailable("No text in LLM response", service="llm")
        return text
