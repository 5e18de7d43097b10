from pydantic import BaseModel, ConfigDict


class DirectoryUser(BaseModel):
    """User record from the account directory."""

    model_config = ConfigDict(extra="ignore")

    id: int
    username: str = ""
    full_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.username
