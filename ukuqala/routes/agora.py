from fastapi import APIRouter, Depends

from ..auth import get_current_doctor
from ..domain.calls.schemas import RtcTokenRequest, RtmTokenRequest
from ..models import Doctor
from ..schemas import envelope
from ..services.agora_service import AgoraService, get_agora_service

router = APIRouter(prefix="/agora", tags=["Agora"])


@router.post("/rtc-token")
async def rtc_token(
    data: RtcTokenRequest,
    current_doctor: Doctor = Depends(get_current_doctor),
    agora: AgoraService = Depends(get_agora_service),
):
    """Standalone RTC token for any channel"""
    token = agora.build_rtc_token(data.channelName, data.uid, data.role, data.expireSeconds)
    return envelope(
        token=token,
        appId=agora.app_id,
        channelName=data.channelName,
        uid=str(data.uid),
        role=data.role,
    )


@router.post("/rtm-token")
async def rtm_token(
    data: RtmTokenRequest,
    current_doctor: Doctor = Depends(get_current_doctor),
    agora: AgoraService = Depends(get_agora_service),
):
    token = agora.build_rtm_token(data.account, data.expireSeconds)
    return envelope(token=token, appId=agora.app_id, account=data.account)
