from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from pydantic import Field


class Settings(BaseSettings):
    # 환경 설정
    ENV: str = Field("development", pattern="^(development|staging|production)$")

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s() - %(message)s"
    LOG_DIR: str = "logs"
    LOG_FILE_NAME: str = "hopexec.log"
    LOG_MAX_BYTES: int = 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    # SSH 설정
    SSH_DEFAULT_TIMEOUT: float = Field(120.0, gt=0)
    SSH_DEFAULT_PORT: int = 22
    SSH_READ_BUFFER_SIZE: int = Field(32768, gt=0)
    SSH_KEEPALIVE_INTERVAL: int = 0
    SSH_EXECUTOR_WORKERS: int = Field(4, ge=4)

    @property
    def LOG_PATH(self) -> Path:
        """로그 파일 전체 경로 (상대 경로는 실행 디렉토리 기준)"""
        log_dir = Path(self.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir / self.LOG_FILE_NAME

    # 환경별 설정값 조정
    def configure_for_environment(self):
        if self.ENV == "development":
            self.LOG_LEVEL = "DEBUG"

    # 환경변수 파일 설정
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__',
        extra='ignore'
    )


settings = Settings()
settings.configure_for_environment()
