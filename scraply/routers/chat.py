from fastapi import APIRouter, HTTPException, status

from .. import schemas
from ..assistant import generate_reply

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/", response_model=schemas.Envelope[schemas.ChatReply])
def chat(chat_in: schemas.ChatRequest):
    """
    Ask the recycling assistant a question.

    Upstream failures never reach the caller as errors: the reply then
    carries a fallback message instead of generated text.

    Raises
    ------
    HTTPException
        - 400 if the message is missing or blank.
    """
    if not chat_in.message or not chat_in.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
    return {"data": {"reply": generate_reply(chat_in.message)}}
