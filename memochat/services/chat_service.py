import logging
from contextlib import nullcontext
from typing import Optional

from memochat.core.config import Settings
from memochat.core.errors import ValidationError
from memochat.models.schemas import ChatTurn, GenerationParams, Role
from memochat.services.history_service import HistoryStore, truncate_history
from memochat.services.inference_service import InferenceClient

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "Sorry, I could not generate a response."


async def process_message(
    message: Optional[str],
    session_id: Optional[str],
    *,
    store: HistoryStore,
    inference: InferenceClient,
    settings: Settings,
) -> str:
    """Run one chat exchange and return the assistant's reply.

    The stored history is only rewritten after a successful generation, so a
    failed model call leaves the session exactly as it was. Requests for the
    same session are not serialized unless ``settings.session_locking`` is on;
    without it concurrent exchanges are last-write-wins.
    """
    if not message or not session_id:
        raise ValidationError("Missing message or sessionId")

    guard = store.session_lock(session_id) if settings.session_locking else nullcontext()
    async with guard:
        history = await store.load(session_id)

        prompt = [
            ChatTurn(role=Role.SYSTEM, content=settings.system_prompt),
            *history,
            ChatTurn(role=Role.USER, content=message),
        ]
        params = GenerationParams(
            max_tokens=settings.max_output_tokens,
            temperature=settings.temperature,
        )
        reply = await inference.generate(prompt, params) or FALLBACK_RESPONSE

        history.append(ChatTurn(role=Role.USER, content=message))
        history.append(ChatTurn(role=Role.ASSISTANT, content=reply))
        history = truncate_history(history, settings.history_window)

        await store.save(session_id, history)

    logger.info(f"Session {session_id}: stored {len(history)} turns")
    return reply


async def clear_session(session_id: Optional[str], *, store: HistoryStore) -> None:
    if not session_id:
        logger.info("Clear requested without sessionId; nothing to delete")
        return
    await store.clear(session_id)
    logger.info(f"Session {session_id}: history cleared")
