import logging
from typing import Callable, List, Optional, Sequence

from fastapi import Depends
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from memochat.core.config import Settings, get_settings
from memochat.core.errors import InferenceError
from memochat.models.schemas import ChatTurn, GenerationParams, Role

logger = logging.getLogger(__name__)

LLMFactory = Callable[[GenerationParams], BaseChatModel]


def to_lc_messages(turns: Sequence[ChatTurn]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in turns:
        if turn.role == Role.SYSTEM.value:
            messages.append(SystemMessage(content=turn.content))
        elif turn.role == Role.ASSISTANT.value:
            messages.append(AIMessage(content=turn.content))
        else:
            messages.append(HumanMessage(content=turn.content))
    return messages


def extract_text(message: BaseMessage) -> Optional[str]:
    """Return the generated text, or None when the model produced nothing usable."""
    content = getattr(message, "content", None)
    if isinstance(content, list):
        # Gemini may answer with a list of parts
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text") or "")
        content = "".join(parts)
    if not isinstance(content, str) or not content:
        return None
    return content


class InferenceClient:
    """Sends a role-tagged conversation to a chat model and returns its reply."""

    def __init__(self, llm_factory: LLMFactory):
        self._llm_factory = llm_factory

    async def generate(self, messages: Sequence[ChatTurn], params: GenerationParams) -> Optional[str]:
        try:
            llm = self._llm_factory(params)
            logger.info(f"Sending {len(messages)} messages to model")
            result = await llm.ainvoke(to_lc_messages(messages))
        except Exception as e:
            logger.error(f"Error generating model response: {str(e)}")
            raise InferenceError(str(e)) from e

        text = extract_text(result)
        if text is None:
            logger.warning("Model returned no text")
        else:
            logger.info(f"Successfully generated response ({len(text)} chars)")
        return text


def gemini_factory(settings: Settings) -> LLMFactory:
    def build(params: GenerationParams) -> BaseChatModel:
        return ChatGoogleGenerativeAI(
            model=settings.chat_model,
            google_api_key=settings.gemini_api_key,
            temperature=params.temperature,
            max_output_tokens=params.max_tokens,
        )

    return build


def get_inference_client(settings: Settings = Depends(get_settings)) -> InferenceClient:
    return InferenceClient(gemini_factory(settings))
