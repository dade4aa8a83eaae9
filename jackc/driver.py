"""
Compiler driver - reads Jack sources, runs one compilation engine per class
and writes the resulting .vm (and optional .xml) files.
"""

import logging
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .lexer import Lexer
from .engine import CompilationEngine
from .vmwriter import VMWriter, ListSink, StreamSink
from .xmlwriter import XMLTreeWriter, write_tokens_xml
from .errors import JackError

LOGGER = logging.getLogger('jackc.driver')

SOURCE_SUFFIX = '.jack'


@dataclass
class CompileOptions:
    """Settings shared by every file of one compiler run."""

    output_dir: Optional[Path] = None   # None: next to each source file
    emit_parse_tree: bool = False       # Name.xml
    emit_tokens: bool = False           # NameT.xml
    encoding: str = 'utf-8'

    def output_path(self, source: Path, suffix: str, stem_suffix: str = '') -> Path:
        directory = self.output_dir if self.output_dir is not None else source.parent
        return directory / f"{source.stem}{stem_suffix}{suffix}"


def read_source(path: Path, encoding: str = 'utf-8') -> str:
    """
    Read a source file.

    Raises:
        JackError: If the file cannot be read or decoded
    """
    try:
        return Path(path).read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise JackError(f"cannot read source ({e})", filename=str(path))


def nesting_error(filename: Optional[str]) -> JackError:
    return JackError("Nesting too deep to compile", filename=filename)


def compile_source(source: str, filename: Optional[str] = None) -> List[str]:
    """
    Compile one class held in a string.

    Args:
        source: Jack source code
        filename: Name reported in errors

    Returns:
        The VM instructions, one per line

    Raises:
        JackError: If compilation fails
    """
    sink = ListSink()
    try:
        CompilationEngine(Lexer(source), VMWriter(sink)).compile_class()
    except JackError as e:
        if filename:
            e.with_filename(filename)
        raise
    except RecursionError:
        raise nesting_error(filename) from None
    return sink.lines


def compile_file(path: Path, options: Optional[CompileOptions] = None) -> Path:
    """
    Compile a .jack file into a .vm file.

    The output files are closed on every path; if compilation fails the
    partial output is left in place for inspection.

    Returns:
        Path of the written .vm file
    """
    options = options or CompileOptions()
    path = Path(path)
    source = read_source(path, options.encoding)
    vm_path = options.output_path(path, '.vm')

    if options.output_dir is not None:
        options.output_dir.mkdir(parents=True, exist_ok=True)

    try:
        if options.emit_tokens:
            tokens_path = options.output_path(path, '.xml', 'T')
            with tokens_path.open('w', encoding=options.encoding) as f:
                write_tokens_xml(Lexer(source), f)

        with ExitStack() as stack:
            vm_out = stack.enter_context(vm_path.open('w', encoding=options.encoding))
            writer = VMWriter(StreamSink(vm_out))
            stack.callback(writer.close)

            tree = None
            if options.emit_parse_tree:
                xml_path = options.output_path(path, '.xml')
                tree = XMLTreeWriter(
                    stack.enter_context(xml_path.open('w', encoding=options.encoding)))

            engine = CompilationEngine(Lexer(source), writer, tree)
            engine.compile_class()

    except JackError as e:
        raise e.with_filename(str(path))
    except RecursionError:
        raise nesting_error(str(path)) from None

    LOGGER.info('compiled %s -> %s', path, vm_path)
    return vm_path


def find_sources(path: Path) -> List[Path]:
    """A single .jack file, or the .jack files of a directory in name order."""
    path = Path(path)
    if path.is_dir():
        sources = sorted(p for p in path.glob(f'*{SOURCE_SUFFIX}') if p.is_file())
        if not sources:
            raise JackError(f"No {SOURCE_SUFFIX} files in {path}")
        return sources
    if path.is_file() and path.suffix == SOURCE_SUFFIX:
        return [path]
    raise JackError(f"Invalid input path: {path} "
                    f"(expected a {SOURCE_SUFFIX} file or a directory)")


def compile_path(path: Path, options: Optional[CompileOptions] = None) -> List[Path]:
    """
    Compile a .jack file or every .jack file in a directory, one after the
    other. The first error stops the run.

    Returns:
        Paths of the written .vm files
    """
    options = options or CompileOptions()
    sources = find_sources(path)
    LOGGER.debug('compiling %d file(s) from %s', len(sources), path)
    return [compile_file(source, options) for source in sources]
