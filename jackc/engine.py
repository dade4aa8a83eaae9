"""
Jack Compilation Engine

Recursive descent compiler that turns the token stream of one class directly
into VM code. There is no syntax tree: every production resolves names
against the symbol table and writes its instructions as it is recognized.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from .tokens import (
    Token, TokenType, BINARY_OPERATORS, UNARY_OPERATORS, KEYWORD_CONSTANTS,
)
from .lexer import Lexer
from .symbols import Kind, Symbol, SymbolTable
from .vmwriter import VMWriter, NullSink, Segment, Command, kind_segment
from .xmlwriter import TreeWriter, NullTreeWriter
from .errors import JackError, SyntaxError, SemanticError

LOGGER = logging.getLogger('jackc.engine')


class SubroutineKind(Enum):
    CONSTRUCTOR = 'constructor'
    FUNCTION = 'function'
    METHOD = 'method'


@dataclass
class LabelCounters:
    """Per-subroutine counters; if and while labels are numbered apart."""
    if_count: int = 0
    while_count: int = 0
    call_count: int = 0


@dataclass
class SubroutineContext:
    """The subroutine currently being compiled."""
    kind: SubroutineKind
    return_type: str
    name: str
    class_name: str
    counters: LabelCounters = field(default_factory=LabelCounters)

    @property
    def qualified_name(self) -> str:
        return f"{self.class_name}.{self.name}"


# Operators with a VM command of their own; '*' and '/' go to the OS
ARITHMETIC = {
    '+': Command.ADD,
    '-': Command.SUB,
    '&': Command.AND,
    '|': Command.OR,
    '<': Command.LT,
    '>': Command.GT,
    '=': Command.EQ,
}

OS_OPERATORS = {
    '*': 'Math.multiply',
    '/': 'Math.divide',
}

UNARY = {
    '-': Command.NEG,
    '~': Command.NOT,
}


class CompilationEngine:
    """Compiles one Jack class to VM code in a single pass."""

    def __init__(self, lexer: Lexer, writer: Optional[VMWriter] = None,
                 tree: Optional[TreeWriter] = None,
                 symbols: Optional[SymbolTable] = None):
        """
        Initialize the engine.

        Args:
            lexer: Token source for the class being compiled
            writer: Destination for VM code; discarded if omitted
            tree: Listener for the parse tree; ignored if omitted
            symbols: Symbol table to fill; a fresh one if omitted
        """
        self.lexer = lexer
        self.vm = writer or VMWriter(NullSink())
        self.tree = tree or NullTreeWriter()
        self.symbols = symbols or SymbolTable()

        self.class_name = ''
        self.subroutine: Optional[SubroutineContext] = None
        self.previous: Optional[Token] = None

    # =========================================================================
    # Program structure
    # =========================================================================

    def compile_class(self) -> None:
        """'class' className '{' classVarDec* subroutineDec* '}'"""
        with self.non_terminal('class'):
            self.consume(TokenType.KEYWORD, 'class')
            self.class_name = self.consume(TokenType.IDENTIFIER).value
            self.consume(TokenType.SYMBOL, '{')

            while self.check(TokenType.KEYWORD, 'static', 'field'):
                self.compile_class_var_dec()

            while self.check(TokenType.KEYWORD, 'constructor', 'function', 'method'):
                self.compile_subroutine()

            self.consume(TokenType.SYMBOL, '}')

        if self.peek().type != TokenType.EOS:
            raise self.syntax_error("end of input")

    def compile_class_var_dec(self) -> None:
        """('static' | 'field') type varName (',' varName)* ';'"""
        with self.non_terminal('classVarDec'):
            kind = Kind(self.consume(TokenType.KEYWORD, 'static', 'field').value)
            self.compile_declarations(kind)

    def compile_subroutine(self) -> None:
        """
        ('constructor' | 'function' | 'method') ('void' | type) subroutineName
        '(' parameterList ')' subroutineBody
        """
        with self.non_terminal('subroutineDec'):
            keyword = self.consume(TokenType.KEYWORD, 'constructor', 'function', 'method')
            return_type = self.consume_type(allow_void=True)
            name = self.consume(TokenType.IDENTIFIER).value

            self.subroutine = SubroutineContext(
                SubroutineKind(keyword.value), return_type, name, self.class_name)
            self.symbols.start_subroutine()

            if self.subroutine.kind == SubroutineKind.METHOD:
                # The receiver arrives as argument 0
                self.symbols.define('this', self.class_name, Kind.ARGUMENT)

            self.consume(TokenType.SYMBOL, '(')
            self.compile_parameter_list()
            self.consume(TokenType.SYMBOL, ')')

            self.compile_subroutine_body()

        counters = self.subroutine.counters
        LOGGER.debug('compiled %s: %d locals, %d if, %d while, %d calls',
                     self.subroutine.qualified_name, self.symbols.count(Kind.LOCAL),
                     counters.if_count, counters.while_count, counters.call_count)
        self.subroutine = None

    def compile_parameter_list(self) -> None:
        """((type varName) (',' type varName)*)?"""
        with self.non_terminal('parameterList'):
            if self.check(TokenType.SYMBOL, ')'):
                return

            while True:
                type_name = self.consume_type()
                self.declare(self.consume(TokenType.IDENTIFIER), type_name, Kind.ARGUMENT)
                if not self.check(TokenType.SYMBOL, ','):
                    break
                self.consume(TokenType.SYMBOL, ',')

    def compile_subroutine_body(self) -> None:
        """'{' varDec* statements '}'"""
        with self.non_terminal('subroutineBody'):
            self.consume(TokenType.SYMBOL, '{')

            while self.check(TokenType.KEYWORD, 'var'):
                self.compile_var_dec()

            self.vm.write_function(self.subroutine.qualified_name,
                                   self.symbols.count(Kind.LOCAL))

            if self.subroutine.kind == SubroutineKind.CONSTRUCTOR:
                self.vm.write_push(Segment.CONSTANT, self.symbols.count(Kind.FIELD))
                self.vm.write_call('Memory.alloc', 1)
                self.vm.write_pop(Segment.POINTER, 0)
            elif self.subroutine.kind == SubroutineKind.METHOD:
                self.vm.write_push(Segment.ARGUMENT, 0)
                self.vm.write_pop(Segment.POINTER, 0)

            self.compile_statements()
            self.consume(TokenType.SYMBOL, '}')

    def compile_var_dec(self) -> None:
        """'var' type varName (',' varName)* ';'"""
        with self.non_terminal('varDec'):
            self.consume(TokenType.KEYWORD, 'var')
            self.compile_declarations(Kind.LOCAL)

    def compile_declarations(self, kind: Kind) -> None:
        """type varName (',' varName)* ';' shared by class and local variables."""
        type_name = self.consume_type()
        self.declare(self.consume(TokenType.IDENTIFIER), type_name, kind)

        while self.check(TokenType.SYMBOL, ','):
            self.consume(TokenType.SYMBOL, ',')
            self.declare(self.consume(TokenType.IDENTIFIER), type_name, kind)

        self.consume(TokenType.SYMBOL, ';')

    # =========================================================================
    # Statements
    # =========================================================================

    def compile_statements(self) -> None:
        """(letStatement | ifStatement | whileStatement | doStatement | returnStatement)*"""
        handlers = {
            'let': self.compile_let,
            'if': self.compile_if,
            'while': self.compile_while,
            'do': self.compile_do,
            'return': self.compile_return,
        }
        with self.non_terminal('statements'):
            while self.check(TokenType.KEYWORD, *handlers):
                handlers[self.peek().value]()

    def compile_let(self) -> None:
        """'let' varName ('[' expression ']')? '=' expression ';'"""
        with self.non_terminal('letStatement'):
            self.consume(TokenType.KEYWORD, 'let')
            target = self.resolve(self.consume(TokenType.IDENTIFIER))
            segment = kind_segment(target.kind)

            if self.check(TokenType.SYMBOL, '['):
                self.vm.write_push(segment, target.index)
                self.consume(TokenType.SYMBOL, '[')
                self.compile_expression()
                self.consume(TokenType.SYMBOL, ']')
                self.vm.write_arithmetic(Command.ADD)

                self.consume(TokenType.SYMBOL, '=')
                self.compile_expression()
                self.consume(TokenType.SYMBOL, ';')

                # The value sits on top of the target address
                self.vm.write_pop(Segment.TEMP, 0)
                self.vm.write_pop(Segment.POINTER, 1)
                self.vm.write_push(Segment.TEMP, 0)
                self.vm.write_pop(Segment.THAT, 0)
            else:
                self.consume(TokenType.SYMBOL, '=')
                self.compile_expression()
                self.consume(TokenType.SYMBOL, ';')
                self.vm.write_pop(segment, target.index)

    def compile_if(self) -> None:
        """'if' '(' expression ')' '{' statements '}' ('else' '{' statements '}')?"""
        with self.non_terminal('ifStatement'):
            self.consume(TokenType.KEYWORD, 'if')

            counters = self.subroutine.counters
            counters.if_count += 1
            else_label = f"ELSE_{counters.if_count}"
            end_label = f"ENDIF_{counters.if_count}"

            self.compile_condition()
            self.vm.write_arithmetic(Command.NOT)
            self.vm.write_if(else_label)

            self.compile_block()
            self.vm.write_goto(end_label)
            self.vm.write_label(else_label)

            if self.check(TokenType.KEYWORD, 'else'):
                self.consume(TokenType.KEYWORD, 'else')
                self.compile_block()

            self.vm.write_label(end_label)

    def compile_while(self) -> None:
        """'while' '(' expression ')' '{' statements '}'"""
        with self.non_terminal('whileStatement'):
            self.consume(TokenType.KEYWORD, 'while')

            counters = self.subroutine.counters
            counters.while_count += 1
            loop_label = f"WHILE_{counters.while_count}"
            end_label = f"ENDWHILE_{counters.while_count}"

            self.vm.write_label(loop_label)
            self.compile_condition()
            self.vm.write_arithmetic(Command.NOT)
            self.vm.write_if(end_label)

            self.compile_block()
            self.vm.write_goto(loop_label)
            self.vm.write_label(end_label)

    def compile_do(self) -> None:
        """'do' subroutineCall ';'"""
        with self.non_terminal('doStatement'):
            self.consume(TokenType.KEYWORD, 'do')
            self.compile_subroutine_call()
            self.consume(TokenType.SYMBOL, ';')
            self.vm.write_pop(Segment.TEMP, 0)

    def compile_return(self) -> None:
        """'return' expression? ';'"""
        with self.non_terminal('returnStatement'):
            self.consume(TokenType.KEYWORD, 'return')
            if self.check(TokenType.SYMBOL, ';'):
                # Every subroutine leaves exactly one value for its caller
                self.vm.write_push(Segment.CONSTANT, 0)
            else:
                self.compile_expression()
            self.consume(TokenType.SYMBOL, ';')
            self.vm.write_return()

    def compile_condition(self) -> None:
        self.consume(TokenType.SYMBOL, '(')
        self.compile_expression()
        self.consume(TokenType.SYMBOL, ')')

    def compile_block(self) -> None:
        self.consume(TokenType.SYMBOL, '{')
        self.compile_statements()
        self.consume(TokenType.SYMBOL, '}')

    # =========================================================================
    # Expressions
    # =========================================================================

    def compile_expression(self) -> None:
        """term (op term)*, evaluated left to right with no precedence."""
        with self.non_terminal('expression'):
            self.compile_term()

            while self.check(TokenType.SYMBOL, *BINARY_OPERATORS):
                op = self.consume(TokenType.SYMBOL).value
                self.compile_term()

                if op in OS_OPERATORS:
                    self.vm.write_call(OS_OPERATORS[op], 2)
                else:
                    self.vm.write_arithmetic(ARITHMETIC[op])

    def compile_term(self) -> None:
        """
        integerConstant | stringConstant | keywordConstant | varName |
        varName '[' expression ']' | subroutineCall | '(' expression ')' |
        unaryOp term
        """
        with self.non_terminal('term'):
            token = self.peek()

            if token.type == TokenType.INT_CONST:
                self.consume(TokenType.INT_CONST)
                self.vm.write_push(Segment.CONSTANT, token.value)

            elif token.type == TokenType.STRING_CONST:
                self.consume(TokenType.STRING_CONST)
                self.write_string(token.value)

            elif token.is_a(TokenType.KEYWORD, *KEYWORD_CONSTANTS):
                self.consume(TokenType.KEYWORD)
                self.write_keyword_constant(token.value)

            elif token.type == TokenType.IDENTIFIER:
                if self.peek(1).is_a(TokenType.SYMBOL, '(', '.'):
                    self.compile_subroutine_call()
                else:
                    self.compile_variable()

            elif token.is_a(TokenType.SYMBOL, '('):
                self.consume(TokenType.SYMBOL, '(')
                self.compile_expression()
                self.consume(TokenType.SYMBOL, ')')

            elif token.is_a(TokenType.SYMBOL, *UNARY_OPERATORS):
                op = self.consume(TokenType.SYMBOL).value
                self.compile_term()
                self.vm.write_arithmetic(UNARY[op])

            else:
                raise self.syntax_error("a term")

    def compile_variable(self) -> None:
        """varName | varName '[' expression ']'"""
        symbol = self.resolve(self.consume(TokenType.IDENTIFIER))
        segment = kind_segment(symbol.kind)

        if self.check(TokenType.SYMBOL, '['):
            self.vm.write_push(segment, symbol.index)
            self.consume(TokenType.SYMBOL, '[')
            self.compile_expression()
            self.consume(TokenType.SYMBOL, ']')
            self.vm.write_arithmetic(Command.ADD)
            self.vm.write_pop(Segment.POINTER, 1)
            self.vm.write_push(Segment.THAT, 0)
        else:
            self.vm.write_push(segment, symbol.index)

    def compile_subroutine_call(self) -> None:
        """
        subroutineName '(' expressionList ')' |
        (className | varName) '.' subroutineName '(' expressionList ')'
        """
        first = self.consume(TokenType.IDENTIFIER).value
        n_args = 0

        if self.check(TokenType.SYMBOL, '.'):
            self.consume(TokenType.SYMBOL, '.')
            name = self.consume(TokenType.IDENTIFIER).value
            receiver = self.symbols.lookup(first)

            if receiver is not None:
                # Method call on an object held in a variable
                self.vm.write_push(kind_segment(receiver.kind), receiver.index)
                callee = f"{receiver.type}.{name}"
                n_args = 1
            else:
                callee = f"{first}.{name}"
        else:
            # Unqualified calls are methods of the current object
            self.vm.write_push(Segment.POINTER, 0)
            callee = f"{self.class_name}.{first}"
            n_args = 1

        self.consume(TokenType.SYMBOL, '(')
        n_args += self.compile_expression_list()
        self.consume(TokenType.SYMBOL, ')')

        self.vm.write_call(callee, n_args)
        if self.subroutine is not None:
            self.subroutine.counters.call_count += 1

    def compile_expression_list(self) -> int:
        """(expression (',' expression)*)? returning the number of expressions."""
        count = 0
        with self.non_terminal('expressionList'):
            if not self.check(TokenType.SYMBOL, ')'):
                self.compile_expression()
                count += 1
                while self.check(TokenType.SYMBOL, ','):
                    self.consume(TokenType.SYMBOL, ',')
                    self.compile_expression()
                    count += 1
        return count

    # =========================================================================
    # Code generation helpers
    # =========================================================================

    def write_string(self, text: str) -> None:
        self.vm.write_push(Segment.CONSTANT, len(text))
        self.vm.write_call('String.new', 1)
        for c in text:
            self.vm.write_push(Segment.CONSTANT, ord(c))
            self.vm.write_call('String.appendChar', 2)

    def write_keyword_constant(self, keyword: str) -> None:
        if keyword == 'this':
            self.vm.write_push(Segment.POINTER, 0)
        else:
            self.vm.write_push(Segment.CONSTANT, 0)
            if keyword == 'true':
                self.vm.write_arithmetic(Command.NOT)

    # =========================================================================
    # Symbols
    # =========================================================================

    def declare(self, token: Token, type_name: str, kind: Kind) -> Symbol:
        if self.symbols.is_defined_in_scope(token.value, kind):
            raise self.error(SemanticError,
                             f"'{token.value}' is already declared", token)
        return self.symbols.define(token.value, type_name, kind)

    def resolve(self, token: Token) -> Symbol:
        symbol = self.symbols.lookup(token.value)
        if symbol is None:
            raise self.error(SemanticError,
                             f"Undeclared variable '{token.value}'", token)
        return symbol

    # =========================================================================
    # Token helpers
    # =========================================================================

    @contextmanager
    def non_terminal(self, tag: str) -> Iterator[None]:
        self.tree.open(tag)
        yield
        self.tree.close(tag)

    def peek(self, offset: int = 0) -> Token:
        return self.lexer.peek(offset)

    def check(self, type: TokenType, *values) -> bool:
        """Check if the next token has the given type and one of values."""
        return self.peek().is_a(type, *values)

    def consume(self, type: TokenType, *values) -> Token:
        """Consume a token of the expected type or raise an error."""
        if not self.check(type, *values):
            raise self.syntax_error(self.describe_expected(type, values))
        return self.advance()

    def consume_type(self, allow_void: bool = False) -> str:
        """Consume 'int' | 'char' | 'boolean' | className, or 'void' if allowed."""
        token = self.peek()
        if token.is_type_name() or (allow_void and token.is_a(TokenType.KEYWORD, 'void')):
            return self.advance().value
        raise self.syntax_error("a return type" if allow_void else "a type")

    def advance(self) -> Token:
        token = self.lexer.advance()
        self.previous = token
        self.tree.terminal(token)
        return token

    @staticmethod
    def describe_expected(type: TokenType, values) -> str:
        kind = type.name.lower()
        if not values:
            return kind
        return f"{kind} " + " or ".join(repr(v) for v in values)

    def syntax_error(self, expected: str) -> SyntaxError:
        token = self.peek()
        where = token
        if token.type == TokenType.EOS and self.previous is not None:
            # Point at the last real token rather than past the end
            where = self.previous
        return self.error(SyntaxError,
                          f"Expected {expected} but got {token.describe()}", where)

    def error(self, cls, message: str, token: Token) -> JackError:
        return cls(message, token.line, token.column, source_line=token.source_line)
