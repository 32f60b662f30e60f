from pydantic import BaseModel


class FileAttachment(BaseModel):
    name: str
    type: str | None = None
    content: str | None = None

    @property
    def is_image(self) -> bool:
        return bool(self.type and self.type.startswith("image/"))
