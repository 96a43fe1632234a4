from fastapi import APIRouter

from contract_assistant.core.calendar_links import build_calendar_link
from contract_assistant.schemas import CalendarLinkRequest, CalendarLinkResponse
from contract_assistant.utils.logger import logger

router = APIRouter()


@router.post("/calendar/link", response_model=CalendarLinkResponse)
async def create_calendar_link(request: CalendarLinkRequest):
    """
    Build an "add to calendar" link for an extracted contract date
    """
    link = build_calendar_link(request.date_info, request.calendar_type)
    logger.info(f"Built {request.calendar_type.value} calendar link for {request.date_info.formatted_date}")
    return CalendarLinkResponse(**link)
