"""
Driver and CLI Tests

Tests for compiling files and directories and for the jackc command line.
"""

from pathlib import Path

import pytest

from jackc import CompileOptions, compile_file, compile_path, JackError, SemanticError
from jackc import cli


MAIN = """// Entry point
class Main {
    function void main() {
        do Output.printInt(1 + 2);
        return;
    }
}
"""

MAIN_VM = """function Main.main 0
push constant 1
push constant 2
add
call Output.printInt 1
pop temp 0
push constant 0
return
"""

POINT = """class Point {
    field int x;
    constructor Point new(int ax) { let x = ax; return this; }
}
"""

BROKEN = """class Broken {
    function void ok() { return; }
    function void bad() {
        let missing = 1;
        return;
    }
}
"""


def write(directory: Path, name: str, text: str) -> Path:
    path = directory / name
    path.write_text(text)
    return path


class TestCompileFile:

    def test_writes_vm_next_to_source(self, tmp_path):
        source = write(tmp_path, "Main.jack", MAIN)
        vm_path = compile_file(source)
        assert vm_path == tmp_path / "Main.vm"
        assert vm_path.read_text() == MAIN_VM

    def test_output_dir(self, tmp_path):
        source = write(tmp_path, "Main.jack", MAIN)
        out_dir = tmp_path / "build" / "vm"
        vm_path = compile_file(source, CompileOptions(output_dir=out_dir))
        assert vm_path == out_dir / "Main.vm"
        assert vm_path.read_text() == MAIN_VM

    def test_xml_outputs(self, tmp_path):
        source = write(tmp_path, "Main.jack", MAIN)
        compile_file(source, CompileOptions(emit_parse_tree=True, emit_tokens=True))

        tree = (tmp_path / "Main.xml").read_text()
        tokens = (tmp_path / "MainT.xml").read_text()
        assert tree.startswith("<class>\n  <keyword> class </keyword>\n")
        assert tree.endswith("</class>\n")
        assert tokens.startswith("<tokens>\n<keyword> class </keyword>\n")
        assert tokens.endswith("<symbol> } </symbol>\n</tokens>\n")

    def test_error_keeps_partial_output(self, tmp_path):
        source = write(tmp_path, "Broken.jack", BROKEN)
        with pytest.raises(SemanticError) as info:
            compile_file(source)

        err = info.value
        assert err.filename == str(source)
        assert err.line == 4
        assert err.source_line == "        let missing = 1;"

        partial = (tmp_path / "Broken.vm").read_text()
        assert partial == "function Broken.ok 0\npush constant 0\nreturn\nfunction Broken.bad 0\n"


class TestCompilePath:

    def test_directory(self, tmp_path):
        write(tmp_path, "Point.jack", POINT)
        write(tmp_path, "Main.jack", MAIN)
        write(tmp_path, "notes.txt", "not jack")

        written = compile_path(tmp_path)

        assert written == [tmp_path / "Main.vm", tmp_path / "Point.vm"]
        assert (tmp_path / "Point.vm").read_text().splitlines()[:4] == [
            "function Point.new 0",
            "push constant 1",
            "call Memory.alloc 1",
            "pop pointer 0",
        ]

    def test_stops_at_first_error(self, tmp_path):
        write(tmp_path, "A.jack", BROKEN.replace("Broken", "A"))
        write(tmp_path, "B.jack", MAIN.replace("Main", "B"))
        with pytest.raises(JackError):
            compile_path(tmp_path)
        assert not (tmp_path / "B.vm").exists()

    def test_empty_directory(self, tmp_path):
        with pytest.raises(JackError):
            compile_path(tmp_path)

    def test_wrong_suffix(self, tmp_path):
        with pytest.raises(JackError):
            compile_path(write(tmp_path, "Main.txt", MAIN))

    def test_missing_path(self, tmp_path):
        with pytest.raises(JackError):
            compile_path(tmp_path / "nope")


class TestCLI:

    def test_success(self, tmp_path):
        source = write(tmp_path, "Main.jack", MAIN)
        assert cli.main([str(source)]) == 0
        assert (tmp_path / "Main.vm").read_text() == MAIN_VM

    def test_options(self, tmp_path):
        write(tmp_path, "Main.jack", MAIN)
        out_dir = tmp_path / "out"
        assert cli.main([str(tmp_path), "-o", str(out_dir), "--xml", "--tokens"]) == 0
        assert (out_dir / "Main.vm").exists()
        assert (out_dir / "Main.xml").exists()
        assert (out_dir / "MainT.xml").exists()

    def test_print(self, tmp_path, capsys):
        source = write(tmp_path, "Main.jack", MAIN)
        assert cli.main([str(source), "--print"]) == 0
        assert capsys.readouterr().out == MAIN_VM
        assert not (tmp_path / "Main.vm").exists()

    def test_error_reports_line(self, tmp_path, capsys):
        source = write(tmp_path, "Broken.jack", BROKEN)
        assert cli.main([str(source)]) == 1

        err = capsys.readouterr().err
        assert f"{source}:4:         let missing = 1;" in err
        assert "Undeclared variable 'missing'" in err

    def test_invalid_path(self, tmp_path, capsys):
        assert cli.main([str(tmp_path / "missing.jack")]) == 1
        assert "Invalid input path" in capsys.readouterr().err

    def test_undecodable_source(self, tmp_path, capsys):
        source = tmp_path / "Main.jack"
        source.write_bytes(MAIN.encode() + b"// \xff\n")
        assert cli.main([str(source)]) == 1
        assert f"error: {source}: cannot read source" in capsys.readouterr().err

    def test_undecodable_source_print(self, tmp_path, capsys):
        source = tmp_path / "Main.jack"
        source.write_bytes(b"\xff")
        assert cli.main([str(source), "--print"]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_deep_nesting(self, tmp_path, capsys):
        depth = 5000
        body = "(" * depth + "1" + ")" * depth
        source = write(tmp_path, "Deep.jack",
                       f"class Deep {{ function int f() {{ return {body}; }} }}")
        assert cli.main([str(source)]) == 1
        assert "Nesting too deep" in capsys.readouterr().err
