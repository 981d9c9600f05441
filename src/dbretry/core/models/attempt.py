from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Attempt(BaseModel):
    """One failed invocation inside a single retry loop.

    Never persisted; built when an attempt fails and handed to the failure
    observer.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    index: int = Field(ge=0)
    max_attempts: int = Field(ge=1)
    error: Optional[BaseException] = None

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def is_last(self) -> bool:
        return self.index + 1 >= self.max_attempts
