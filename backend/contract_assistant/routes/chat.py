from fastapi import APIRouter, HTTPException

from contract_assistant.core.chat_assistant import answer_question
from contract_assistant.schemas import ChatRequest, ChatResponse
from contract_assistant.utils.logger import logger

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """
    Answer a question about an analyzed contract
    """
    if not (request.context and request.context.strip()) and request.analysis is None:
        raise HTTPException(status_code=400, detail={"error": "Context or analysis is required"})

    try:
        response, focus = await answer_question(request.question, request.context, request.analysis)
        return ChatResponse(response=response, focus=focus)
    except Exception as e:
        logger.error(f"Chat error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail={"error": "Failed to generate response", "details": str(e)})
