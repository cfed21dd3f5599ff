from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class LanguageSelection(BaseModel):
    """Language names as given on the command line."""
    names: List[str] = Field(min_length=1)

    @field_validator("names", mode="before")
    @classmethod
    def split_names(cls, value):
        """Accept repeated flags and comma-separated values; drop blanks and duplicates."""
        if isinstance(value, str):
            value = [value]
        names: List[str] = []
        seen = set()
        for item in value or []:
            for name in str(item).split(","):
                name = name.strip()
                if name and name.casefold() not in seen:
                    seen.add(name.casefold())
                    names.append(name)
        return names


class SessionSettings(BaseModel):
    """Speech session settings after merging environment and CLI flags."""
    backend: Literal["speechd", "pyttsx3", "log"]
    output_module: Optional[str] = Field(default=None, min_length=1)
    client_name: str = Field(min_length=1)
    connect_retries: int = Field(ge=1)
    connect_delay: float = Field(ge=0.0)
    playback_timeout: Optional[float] = Field(default=None, gt=0.0)
