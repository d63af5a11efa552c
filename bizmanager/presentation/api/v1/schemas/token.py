from pydantic import BaseModel, field_validator


class TokenPayload(BaseModel):
    """Claims the API relies on; 'sub' is the user id"""

    sub: int
    exp: int | None = None

    @field_validator("sub", mode="before")
    @classmethod
    def parse_subject(cls, value: object) -> object:
        # JWT subjects are strings on the wire
        if isinstance(value, str) and value.isdigit():
            return int(value)
        return value
