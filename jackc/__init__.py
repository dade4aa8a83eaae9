"""
jackc - Jack to VM Compiler

A single pass compiler from the Jack teaching language to the text
instruction format of the Jack stack VM.

Example:
    from jackc import compile_source

    lines = compile_source('''
        class Main {
            function void main() {
                do Output.printInt(1 + 2);
                return;
            }
        }
    ''')
"""

from .tokens import Token, TokenType
from .lexer import Lexer
from .symbols import Kind, Symbol, SymbolTable
from .vmwriter import (
    VMWriter, Segment, Command, InstructionSink, StreamSink, ListSink, NullSink,
)
from .xmlwriter import TreeWriter, NullTreeWriter, XMLTreeWriter, write_tokens_xml
from .engine import CompilationEngine, SubroutineContext, SubroutineKind
from .driver import CompileOptions, compile_source, compile_file, compile_path
from .errors import JackError, LexError, SyntaxError, SemanticError

__version__ = "0.1.0"
__all__ = [
    # Compiler
    "compile_source",
    "compile_file",
    "compile_path",
    "CompileOptions",

    # Components
    "Token",
    "TokenType",
    "Lexer",
    "Kind",
    "Symbol",
    "SymbolTable",
    "VMWriter",
    "Segment",
    "Command",
    "InstructionSink",
    "StreamSink",
    "ListSink",
    "NullSink",
    "TreeWriter",
    "NullTreeWriter",
    "XMLTreeWriter",
    "write_tokens_xml",
    "CompilationEngine",
    "SubroutineContext",
    "SubroutineKind",

    # Errors
    "JackError",
    "LexError",
    "SyntaxError",
    "SemanticError",
]
