"""Advisor cat chat: per-user transcripts used as LLM context.

Each transcript starts with one fixed system directive that is never reset
or trimmed. After it, only the most recent `max_messages` entries are kept.

A failed turn leaves the user's question in the transcript. Asking the same
question again right after a failure reuses that entry instead of appending
a duplicate.
"""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from config import CHAT_HISTORY_MAX_MESSAGES, CHAT_MODEL, CHAT_TEMPERATURE

from .errors import InvalidInput
from .llm_service import Completer

logger = logging.getLogger(__name__)

SYSTEM_DIRECTIVE = (
    "You are a friendly Canadian university advisor cat \U0001F431.\n"
    "ONLY answer questions related to Canadian universities, courses, admissions, "
    "grades, scholarships, or student life.\n"
    "Do NOT answer unrelated questions like personal hygiene, cooking, or politics.\n"
    "Keep answers short, clear, and helpful."
)


class ConversationService:
    def __init__(
        self,
        llm: Completer,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_messages: int | None = None,
    ) -> None:
        self._llm = llm
        self._model = model or CHAT_MODEL
        self._temperature = CHAT_TEMPERATURE if temperature is None else temperature
        self._max_messages = CHAT_HISTORY_MAX_MESSAGES if max_messages is None else int(max_messages)
        if self._max_messages < 2:
            raise ValueError("max_messages must keep at least one question and one answer")
        self._transcripts: dict[str, list[dict[str, str]]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, username: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(username)
            if lock is None:
                lock = self._locks[username] = threading.Lock()
            return lock

    def _trim(self, transcript: list[dict[str, str]]) -> None:
        overflow = len(transcript) - 1 - self._max_messages
        if overflow > 0:
            del transcript[1 : 1 + overflow]
        # Keep whole turns: the window after the directive starts at a question.
        while len(transcript) > 1 and transcript[1]["role"] != "user":
            del transcript[1]

    def transcript(self, username: str) -> list[dict[str, str]]:
        if username not in self._transcripts:
            return []
        with self._lock_for(username):
            return [dict(m) for m in self._transcripts.get(username, [])]

    def ask(self, username: str, question: str | None) -> str:
        question = (question or "").strip()
        if not question:
            raise InvalidInput("Question is required")

        with self._lock_for(username):
            transcript = self._transcripts.setdefault(
                username, [{"role": "system", "content": SYSTEM_DIRECTIVE}]
            )
            last = transcript[-1]
            if not (last["role"] == "user" and last["content"] == question):
                transcript.append({"role": "user", "content": question})
            self._trim(transcript)

            answer = self._llm.complete(
                self._snapshot(transcript),
                model=self._model,
                temperature=self._temperature,
            )

            transcript.append({"role": "assistant", "content": answer})
            self._trim(transcript)
            logger.info("Chat turn for %s (%d messages)", username, len(transcript))
            return answer

    @staticmethod
    def _snapshot(transcript: Sequence[dict[str, str]]) -> list[dict[str, str]]:
        return [dict(m) for m in transcript]
