"""
Tool-call delta accumulation for LLM Kit

Backends stream tool calls as per-index fragments. The accumulator merges them
into complete calls and emits each completed call exactly once.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..utils.json_parsing import try_parse_json
from .exceptions import ToolCallProtocolError
from .types import ErrorPart, StreamPart, ToolCallDeltaPart, ToolCallStreamPart

logger = logging.getLogger(__name__)


def generate_tool_call_id() -> str:
    return f"call_{uuid.uuid4().hex}"


@dataclass
class _ToolCallRecord:
    tool_call_id: Optional[str]
    tool_name: Optional[str]
    args_text: str = ""
    closed: bool = False


class ToolCallAccumulator:
    """
    Stateful merge of tool-call fragments keyed by backend-assigned index

    One accumulator belongs to one stream. Fragments are appended in arrival
    order; every non-empty fragment is re-emitted as a ``tool-call-delta`` and
    the first time the accumulated arguments parse as JSON (with a known tool
    name) a single ``tool-call`` part is emitted and the index is closed.
    """

    def __init__(self, provider: Optional[str] = None, id_generator: Optional[Callable[[], str]] = None):
        self.provider = provider
        self._id_generator = id_generator or generate_tool_call_id
        self._records: Dict[int, _ToolCallRecord] = {}

    def add(
        self,
        index: int,
        *,
        tool_call_id: Optional[str] = None,
        tool_name: Optional[str] = None,
        args_text_delta: Optional[str] = None,
    ) -> List[StreamPart]:
        """
        Apply one fragment and return the parts it produces

        Args:
            index: Backend-assigned tool-call index, scoped to this stream
            tool_call_id: Call id, when the fragment carries one
            tool_name: Tool name, when the fragment carries one
            args_text_delta: Next piece of the JSON argument text

        Returns:
            Zero or more stream parts, in emission order
        """
        args_text_delta = args_text_delta or ""
        record = self._records.get(index)

        if record is None:
            record = _ToolCallRecord(tool_call_id=tool_call_id, tool_name=tool_name)
            self._records[index] = record
        elif record.closed:
            if args_text_delta:
                return [self._violation(index, f"Tool call at index {index} received arguments after it completed")]
            return []
        else:
            conflict = self._conflict(record, tool_call_id, tool_name)
            if conflict:
                return [self._violation(index, conflict)]
            record.tool_call_id = record.tool_call_id or tool_call_id
            record.tool_name = record.tool_name or tool_name

        parts: List[StreamPart] = []
        if args_text_delta:
            record.args_text += args_text_delta
            parts.append(
                ToolCallDeltaPart(
                    index=index,
                    tool_call_id=record.tool_call_id or "",
                    tool_name=record.tool_name or "",
                    args_text_delta=args_text_delta,
                )
            )

        if record.tool_name and try_parse_json(record.args_text):
            record.closed = True
            if not record.tool_call_id:
                record.tool_call_id = self._id_generator()
            parts.append(
                ToolCallStreamPart(
                    tool_call_id=record.tool_call_id,
                    tool_name=record.tool_name,
                    args=record.args_text,
                )
            )
        return parts

    def flush(self) -> List[StreamPart]:
        """Report tool calls whose arguments never became valid JSON."""
        parts: List[StreamPart] = []
        for index, record in sorted(self._records.items()):
            if not record.closed:
                parts.append(self._violation(index, f"Tool call at index {index} ended with incomplete arguments"))
        return parts

    @staticmethod
    def _conflict(record: _ToolCallRecord, tool_call_id: Optional[str], tool_name: Optional[str]) -> Optional[str]:
        if tool_call_id and record.tool_call_id and tool_call_id != record.tool_call_id:
            return f"Tool call id changed from '{record.tool_call_id}' to '{tool_call_id}'"
        if tool_name and record.tool_name and tool_name != record.tool_name:
            return f"Tool name changed from '{record.tool_name}' to '{tool_name}'"
        return None

    def _violation(self, index: int, message: str) -> ErrorPart:
        logger.warning("Tool-call protocol violation: %s", message)
        return ErrorPart(error=ToolCallProtocolError(message, index=index, provider=self.provider))
