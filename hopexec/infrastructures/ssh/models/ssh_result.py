from pydantic import BaseModel, ConfigDict, Field


class CommandResult(BaseModel):
    """SSH 커맨드 실행 결과 모델 클래스

    by_alias 직렬화 시 {command, output, error, exitCode} 형태로 변환됨
    """
    model_config = ConfigDict(frozen=True)

    command: str
    stdout: str = Field(serialization_alias="output")
    stderr: str = Field(serialization_alias="error")
    exit_code: int = Field(serialization_alias="exitCode")

    @property
    def successful(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        """String representation of command result."""
        status = "Success" if self.successful else f"Failed (exit code: {self.exit_code})"
        return f"Command '{self.command}': {status}\nstdout: {self.stdout}"
