"""
Parse Tree and Token XML Tests
"""

import io

import pytest

from jackc import CompilationEngine, Lexer, TreeWriter, XMLTreeWriter, write_tokens_xml


def parse_tree(source):
    out = io.StringIO()
    CompilationEngine(Lexer(source), tree=XMLTreeWriter(out)).compile_class()
    return out.getvalue()


class TestParseTree:

    def test_minimal_class(self):
        xml = parse_tree("class Main { function void main() { return; } }")
        assert xml == (
            "<class>\n"
            "  <keyword> class </keyword>\n"
            "  <identifier> Main </identifier>\n"
            "  <symbol> { </symbol>\n"
            "  <subroutineDec>\n"
            "    <keyword> function </keyword>\n"
            "    <keyword> void </keyword>\n"
            "    <identifier> main </identifier>\n"
            "    <symbol> ( </symbol>\n"
            "    <parameterList>\n"
            "    </parameterList>\n"
            "    <symbol> ) </symbol>\n"
            "    <subroutineBody>\n"
            "      <symbol> { </symbol>\n"
            "      <statements>\n"
            "        <returnStatement>\n"
            "          <keyword> return </keyword>\n"
            "          <symbol> ; </symbol>\n"
            "        </returnStatement>\n"
            "      </statements>\n"
            "      <symbol> } </symbol>\n"
            "    </subroutineBody>\n"
            "  </subroutineDec>\n"
            "  <symbol> } </symbol>\n"
            "</class>\n"
        )

    def test_expression_nesting(self):
        xml = parse_tree("""
            class Main {
                field int x;
                method void f() { let x = -x < 1; return; }
            }
        """)
        lines = [line.strip() for line in xml.splitlines()]
        start = lines.index("<letStatement>")
        assert lines[start:start + 19] == [
            "<letStatement>",
            "<keyword> let </keyword>",
            "<identifier> x </identifier>",
            "<symbol> = </symbol>",
            "<expression>",
            "<term>",
            "<symbol> - </symbol>",
            "<term>",
            "<identifier> x </identifier>",
            "</term>",
            "</term>",
            "<symbol> &lt; </symbol>",
            "<term>",
            "<integerConstant> 1 </integerConstant>",
            "</term>",
            "</expression>",
            "<symbol> ; </symbol>",
            "</letStatement>",
            "<returnStatement>",
        ]

    def test_call_arguments(self):
        xml = parse_tree('class Main { function void f() { do Output.printString("a&b"); return; } }')
        lines = [line.strip() for line in xml.splitlines()]
        start = lines.index("<doStatement>")
        assert lines[start:start + 13] == [
            "<doStatement>",
            "<keyword> do </keyword>",
            "<identifier> Output </identifier>",
            "<symbol> . </symbol>",
            "<identifier> printString </identifier>",
            "<symbol> ( </symbol>",
            "<expressionList>",
            "<expression>",
            "<term>",
            "<stringConstant> a&amp;b </stringConstant>",
            "</term>",
            "</expression>",
            "</expressionList>",
        ]


class TestTokensXML:

    def test_tokens(self):
        out = io.StringIO()
        count = write_tokens_xml(Lexer('if (x < 10) { let s = "hi"; }'), out)
        assert count == 13
        assert out.getvalue() == (
            "<tokens>\n"
            "<keyword> if </keyword>\n"
            "<symbol> ( </symbol>\n"
            "<identifier> x </identifier>\n"
            "<symbol> &lt; </symbol>\n"
            "<integerConstant> 10 </integerConstant>\n"
            "<symbol> ) </symbol>\n"
            "<symbol> { </symbol>\n"
            "<keyword> let </keyword>\n"
            "<identifier> s </identifier>\n"
            "<symbol> = </symbol>\n"
            "<stringConstant> hi </stringConstant>\n"
            "<symbol> ; </symbol>\n"
            "<symbol> } </symbol>\n"
            "</tokens>\n"
        )


class TestTreeWriter:

    def test_base_is_abstract(self):
        with pytest.raises(TypeError):
            TreeWriter()

    def test_partial_writer_is_abstract(self):
        class OpenOnly(TreeWriter):
            def open(self, tag):
                pass

        with pytest.raises(TypeError):
            OpenOnly()
