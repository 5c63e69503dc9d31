import logging

from fastapi import APIRouter, Depends

from memochat.core.config import Settings, get_settings
from memochat.core.errors import ChatServiceError
from memochat.models.schemas import ChatRequest, ChatResponse, ClearRequest, ClearResponse
from memochat.services.chat_service import clear_session, process_message
from memochat.services.history_service import HistoryStore, get_history_store
from memochat.services.inference_service import InferenceClient, get_inference_client

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    store: HistoryStore = Depends(get_history_store),
    inference: InferenceClient = Depends(get_inference_client),
    settings: Settings = Depends(get_settings),
):
    try:
        reply = await process_message(
            req.message,
            req.session_id,
            store=store,
            inference=inference,
            settings=settings,
        )
    except ChatServiceError:
        raise
    except Exception as e:
        logger.error(f"Chat error: {str(e)}", exc_info=True)
        raise ChatServiceError(str(e)) from e

    return ChatResponse(response=reply, session_id=req.session_id)

@router.post("/clear", response_model=ClearResponse)
async def clear(req: ClearRequest, store: HistoryStore = Depends(get_history_store)):
    try:
        await clear_session(req.session_id, store=store)
    except ChatServiceError:
        raise
    except Exception as e:
        logger.error(f"Clear error: {str(e)}", exc_info=True)
        raise ChatServiceError(str(e)) from e

    return ClearResponse(success=True)
