"""Tutor chat endpoints.

History is persisted per user. ``POST /api/chat/ask`` runs a full turn:
it stores the question, asks the tutor with the stored history and
stores the reply.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from bizu.core.tutor import ChatMessage, ask_tutor, welcome_message
from bizu.db.store import StudyStore
from bizu.llm.client import LLMClient, LLMError, LLMRateLimitError
from bizu.web.dependencies import get_llm_client, get_store
from bizu.web.schemas import (
    ChatHistoryResponse,
    ChatMessageCreate,
    ChatMessageResponse,
    TutorQuestion,
)

router = APIRouter(prefix="/api/chat", tags=["chat"])


def _to_response(message: ChatMessage) -> ChatMessageResponse:
    return ChatMessageResponse(
        id=message.id,
        role=message.role,
        text=message.text,
        timestamp=message.timestamp,
    )


@router.get("", response_model=ChatHistoryResponse)
def get_history(store: StudyStore = Depends(get_store)) -> ChatHistoryResponse:
    """Stored history, or the welcome message when there is none."""
    history = store.get_chat_history() or [welcome_message()]
    messages = [_to_response(m) for m in history]
    return ChatHistoryResponse(messages=messages, count=len(messages))


@router.post("", response_model=ChatMessageResponse, status_code=status.HTTP_201_CREATED)
def save_message(
    request: ChatMessageCreate,
    store: StudyStore = Depends(get_store),
) -> ChatMessageResponse:
    """Persist one chat message."""
    message = ChatMessage(role=request.role, text=request.text)
    if request.id:
        message.id = request.id
    if request.timestamp:
        message.timestamp = request.timestamp

    store.save_chat_message(message)
    return _to_response(message)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_history(store: StudyStore = Depends(get_store)) -> None:
    """Delete the whole conversation."""
    store.clear_chat_history()


@router.post("/ask", response_model=ChatMessageResponse)
def ask(
    request: TutorQuestion,
    store: StudyStore = Depends(get_store),
    client: LLMClient = Depends(get_llm_client),
) -> ChatMessageResponse:
    """Ask the tutor and persist both sides of the turn."""
    history = [m.to_history_entry() for m in store.get_chat_history()]

    question = ChatMessage(role="user", text=request.message)
    try:
        text = ask_tutor(history, request.message, client)
    except LLMRateLimitError as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))
    except LLMError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    reply = ChatMessage(role="model", text=text)
    store.save_chat_message(question)
    store.save_chat_message(reply)
    return _to_response(reply)
