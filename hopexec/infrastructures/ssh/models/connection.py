from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from hopexec.core.config import settings


class HopConfig(BaseModel):
    """SSH 홉 하나의 접속 대상과 자격 증명 정보를 담는 모델"""
    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=settings.SSH_DEFAULT_PORT, ge=1, le=65535)
    username: str
    password: str = Field(repr=False)

    @field_validator("port", mode="before")
    @classmethod
    def default_port(cls, value: Optional[int]) -> int:
        """미지정(0 또는 None) 포트는 기본 SSH 포트로 대체"""
        if value is None or value == 0:
            return settings.SSH_DEFAULT_PORT
        return value

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class SessionState(str, Enum):
    """실행 세션 상태

    Unconnected -> Connecting -> FullyConnected -> Executing -> Closed
    """
    UNCONNECTED = "UNCONNECTED"
    CONNECTING = "CONNECTING"
    FULLY_CONNECTED = "FULLY_CONNECTED"
    EXECUTING = "EXECUTING"
    CLOSED_SUCCESS = "CLOSED_SUCCESS"
    CLOSED_FAILED = "CLOSED_FAILED"
