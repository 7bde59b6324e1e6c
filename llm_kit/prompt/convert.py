"""
Conversion of caller-facing prompts into the normalized Prompt model
"""

from typing import Any, Dict, Literal, Optional, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from ..core.exceptions import InvalidPromptError
from ..core.types import Message, Prompt, TextPart, UserMessage

InputFormat = Literal["prompt", "messages"]

_MESSAGE_ADAPTER: TypeAdapter = TypeAdapter(Message)


def get_input_format(prompt: Optional[str] = None, messages: Optional[Sequence[Any]] = None) -> InputFormat:
    """
    Report which prompt form the caller used

    Raises:
        InvalidPromptError: If neither or both forms were given
    """
    if prompt is None and messages is None:
        raise InvalidPromptError("Either prompt or messages must be defined")
    if prompt is not None and messages is not None:
        raise InvalidPromptError("Prompt and messages cannot be defined at the same time")
    return "prompt" if prompt is not None else "messages"


def _to_message(message: Union[Dict[str, Any], Any]) -> Any:
    if isinstance(message, dict):
        try:
            return _MESSAGE_ADAPTER.validate_python(message)
        except ValidationError as e:
            raise InvalidPromptError(f"Invalid message: {e}") from e
    return message


def convert_to_model_prompt(
    system: Optional[str] = None,
    prompt: Optional[str] = None,
    messages: Optional[Sequence[Any]] = None,
) -> Prompt:
    """
    Build the Prompt every backend adapter consumes

    Args:
        system: Optional system instruction
        prompt: A plain user prompt
        messages: A conversation, as message models or dicts

    Returns:
        The normalized Prompt
    """
    if get_input_format(prompt, messages) == "prompt":
        return Prompt(system=system, messages=(UserMessage(content=(TextPart(text=prompt),)),))

    try:
        return Prompt(system=system, messages=tuple(_to_message(m) for m in messages))
    except ValidationError as e:
        raise InvalidPromptError(f"Invalid messages: {e}") from e
