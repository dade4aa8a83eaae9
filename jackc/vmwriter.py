"""
Jack VM Writer

Formats VM instructions and hands each line to an instruction sink.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, TextIO

from .symbols import Kind


class Segment(Enum):
    """VM memory segments."""

    CONSTANT = 'constant'
    ARGUMENT = 'argument'
    LOCAL = 'local'
    STATIC = 'static'
    THIS = 'this'
    THAT = 'that'
    POINTER = 'pointer'
    TEMP = 'temp'


class Command(Enum):
    """VM arithmetic and logical commands."""

    ADD = 'add'
    SUB = 'sub'
    NEG = 'neg'
    EQ = 'eq'
    GT = 'gt'
    LT = 'lt'
    AND = 'and'
    OR = 'or'
    NOT = 'not'


KIND_SEGMENTS = {
    Kind.STATIC: Segment.STATIC,
    Kind.FIELD: Segment.THIS,
    Kind.ARGUMENT: Segment.ARGUMENT,
    Kind.LOCAL: Segment.LOCAL,
}


def kind_segment(kind: Kind) -> Segment:
    """Segment holding variables of the given kind."""
    return KIND_SEGMENTS[kind]


# =============================================================================
# Sinks
# =============================================================================

class InstructionSink(ABC):
    """Receives one formatted instruction line at a time."""

    @abstractmethod
    def write_line(self, line: str) -> None:
        pass

    def close(self) -> None:
        pass


class StreamSink(InstructionSink):
    """Writes newline-terminated lines to a text stream."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def write_line(self, line: str) -> None:
        self.stream.write(line + '\n')

    def close(self) -> None:
        self.stream.flush()


class ListSink(InstructionSink):
    """Collects lines in memory."""

    def __init__(self):
        self.lines: List[str] = []

    def write_line(self, line: str) -> None:
        self.lines.append(line)

    def text(self) -> str:
        return ''.join(line + '\n' for line in self.lines)


class NullSink(InstructionSink):
    """Discards everything; for parsing without code generation."""

    def write_line(self, line: str) -> None:
        pass


# =============================================================================
# Writer
# =============================================================================

class VMWriter:
    """Emits VM commands to a sink."""

    def __init__(self, sink: InstructionSink):
        self.sink = sink

    def write_push(self, segment: Segment, index: int) -> None:
        self._emit('push', segment.value, self._check(index))

    def write_pop(self, segment: Segment, index: int) -> None:
        self._emit('pop', segment.value, self._check(index))

    def write_arithmetic(self, command: Command) -> None:
        self._emit(command.value)

    def write_label(self, label: str) -> None:
        self._emit('label', label)

    def write_goto(self, label: str) -> None:
        self._emit('goto', label)

    def write_if(self, label: str) -> None:
        self._emit('if-goto', label)

    def write_call(self, name: str, n_args: int) -> None:
        self._emit('call', name, self._check(n_args))

    def write_function(self, name: str, n_locals: int) -> None:
        self._emit('function', name, self._check(n_locals))

    def write_return(self) -> None:
        self._emit('return')

    def close(self) -> None:
        self.sink.close()

    def _emit(self, *parts) -> None:
        self.sink.write_line(' '.join(str(p) for p in parts))

    @staticmethod
    def _check(number: int) -> int:
        if number < 0:
            raise ValueError(f"VM operand must be non-negative, got {number}")
        return number
