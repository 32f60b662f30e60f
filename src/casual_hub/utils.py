from collections.abc import Sequence

from casual_hub.models.attachment import FileAttachment


def render_attachment(file: FileAttachment) -> str:
    if file.is_image:
        return f"[Image: {file.name}]"
    return f"File: {file.name}\n\n{file.content or ''}"


def build_message_content(message: str | None, files: Sequence[FileAttachment] | None) -> str:
    """Inline attachments ahead of the user's message text."""
    message = message or ""
    if not files:
        return message

    file_contents = "\n\n".join(render_attachment(file) for file in files)
    if not message:
        return file_contents
    return f"{file_contents}\n\n{message}"


def build_instructions(system_prompt: str | None, memory_context: str | None, default: str) -> str:
    instructions = system_prompt or default
    if memory_context:
        instructions += f"\n\nConversation context: {memory_context}"
    return instructions
