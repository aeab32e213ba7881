"""AI study assistant backed by Gemini.

Every public function returns text. When no API key is configured or the
request fails, a short placeholder string is returned instead of raising.
"""
import logging
from typing import Optional

from google import genai
from google.genai import types

from study_companion.models import Subject

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"
UNAVAILABLE = "AI unavailable."
FAILED = "AI request failed."
EMPTY = "No response generated."
LIST_LIMIT = 15


class StudyAssistant:
    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MODEL, client=None):
        self.api_key = api_key
        self.model = model
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.api_key:
            logger.warning("GEMINI_API_KEY missing; AI features disabled.")
            return None
        try:
            self._client = genai.Client(api_key=self.api_key)
        except Exception as e:
            logger.error("Gemini client init failed: %s", e)
            return None
        return self._client

    def generate(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        client = self._get_client()
        if client is None:
            return UNAVAILABLE
        config = types.GenerateContentConfig(system_instruction=system_instruction) if system_instruction else None
        try:
            response = client.models.generate_content(model=self.model, contents=prompt, config=config)
            text = (response.text or "").strip()
        except Exception as e:
            logger.error("Gemini request error: %s", e)
            return FAILED
        return text or EMPTY

    def ask(self, query: str, context: Optional[str] = None) -> str:
        prompt = f"Context:\n{context}\n\nQuestion:\n{query}" if context else query
        return self.generate(prompt, "You are an engineering professor. Explain clearly and rigorously.")

    def note_content(self, title: str, stream: str) -> str:
        prompt = (
            f'Write concise GATE {stream} short notes for "{title}".\n'
            "Include formulas, key concepts, and common traps.\n"
            "Markdown. Max 200 words."
        )
        return self.generate(prompt)

    def syllabus_strategy(self, subjects: list[Subject], stream: str, days_left: int, target_marks: int) -> str:
        buckets = strategy_buckets(subjects)
        prompt = (
            f"GATE {stream} Strategy\n"
            f"Days left: {days_left}\n"
            f"Target marks: {target_marks}\n\n"
            f"Weak topics: {', '.join(buckets['weak'][:LIST_LIMIT]) or 'None'}\n"
            f"Pending PYQs: {', '.join(buckets['pending'][:LIST_LIMIT]) or 'None'}\n"
            f"Unstarted primary: {', '.join(buckets['unstarted'][:LIST_LIMIT]) or 'None'}\n\n"
            "Give a 7-day plan and an honest feasibility assessment.\n"
            "Max 350 words."
        )
        return self.generate(prompt, "You are an experienced exam mentor. Be precise and honest.")


def strategy_buckets(subjects: list[Subject]) -> dict[str, list[str]]:
    """Sort topics into weak, pending-PYQ and unstarted-primary lists.

    A topic lands in at most one bucket, checked in that order.
    """
    buckets = {"weak": [], "pending": [], "unstarted": []}
    for s in subjects or []:
        for c in s.chapters or []:
            for t in c.topics or []:
                label = f"{s.name}: {t.name}"
                p = t.progress
                if p and p.pyq_failed:
                    buckets["weak"].append(label)
                elif p and p.lecture and not p.pyq:
                    buckets["pending"].append(label)
                elif t.kind == "primary" and not (p and p.lecture):
                    buckets["unstarted"].append(label)
    return buckets
