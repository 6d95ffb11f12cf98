"""Process-wide runner configuration."""

from pydantic import Field, field_validator

from hash_autorun.models.base import Model


class RunnerConfig(Model):
    """Settings shared read-only by every run of the process."""

    host_id: str = Field(..., description="Host identifier exported to scripts")
    decoder: str | None = Field(
        default=None, description="Shell filter decoding script bodies"
    )
    encoder: str | None = Field(
        default=None, description="Shell filter encoding captured output"
    )

    @field_validator("decoder", "encoder")
    @classmethod
    def _empty_command_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value
