"""
VM Writer Tests
"""

import io

import pytest

from jackc import (
    VMWriter, Segment, Command, Kind, InstructionSink, StreamSink, ListSink, NullSink,
)
from jackc.vmwriter import kind_segment


class TestVMWriter:

    def test_all_instructions(self):
        out = io.StringIO()
        writer = VMWriter(StreamSink(out))

        for i, segment in enumerate(Segment):
            writer.write_push(segment, i)
        writer.write_pop(Segment.TEMP, 7)
        for command in Command:
            writer.write_arithmetic(command)
        writer.write_label("foo")
        writer.write_goto("bar")
        writer.write_if("baz")
        writer.write_call("Foo.bar", 2)
        writer.write_function("Foo.baz", 4)
        writer.write_return()
        writer.close()

        assert out.getvalue() == (
            "push constant 0\n"
            "push argument 1\n"
            "push local 2\n"
            "push static 3\n"
            "push this 4\n"
            "push that 5\n"
            "push pointer 6\n"
            "push temp 7\n"
            "pop temp 7\n"
            "add\n"
            "sub\n"
            "neg\n"
            "eq\n"
            "gt\n"
            "lt\n"
            "and\n"
            "or\n"
            "not\n"
            "label foo\n"
            "goto bar\n"
            "if-goto baz\n"
            "call Foo.bar 2\n"
            "function Foo.baz 4\n"
            "return\n"
        )

    def test_list_sink(self):
        sink = ListSink()
        writer = VMWriter(sink)
        writer.write_push(Segment.CONSTANT, 3)
        writer.write_return()
        assert sink.lines == ["push constant 3", "return"]
        assert sink.text() == "push constant 3\nreturn\n"

    def test_null_sink(self):
        writer = VMWriter(NullSink())
        writer.write_push(Segment.CONSTANT, 1)
        writer.close()

    def test_sink_base_is_abstract(self):
        with pytest.raises(TypeError):
            InstructionSink()

    @pytest.mark.parametrize("write", [
        lambda w: w.write_push(Segment.LOCAL, -1),
        lambda w: w.write_pop(Segment.LOCAL, -1),
        lambda w: w.write_call("Foo.bar", -1),
        lambda w: w.write_function("Foo.bar", -2),
    ])
    def test_negative_operands_rejected(self, write):
        with pytest.raises(ValueError):
            write(VMWriter(NullSink()))


class TestKindSegments:

    @pytest.mark.parametrize("kind,segment", [
        (Kind.STATIC, Segment.STATIC),
        (Kind.FIELD, Segment.THIS),
        (Kind.ARGUMENT, Segment.ARGUMENT),
        (Kind.LOCAL, Segment.LOCAL),
    ])
    def test_mapping(self, kind, segment):
        assert kind_segment(kind) == segment
