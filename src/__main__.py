#!/usr/bin/env python3
"""
extramark - Markdown compiler with extra block and inline grammar

Compiles markdown sources to HTML with three additions to the usual syntax:

    <details open="">
    <summary>Collapsible sections</summary>
    Body, parsed as *markdown*
    </details>

    Term
    :Definition lists

    *[HTML]: HyperText Markup Language
    Later uses of HTML are wrapped in <abbr> tags.

Usage:
    python -m extramark inputdir/ outputdir/ [--inputFile notes.md] [--pattern "*.md"]

Examples:
    # Compile every .md file in the current directory
    python -m extramark . html/

    # One file, as a complete HTML document
    python -m extramark docs/ html/ --inputFile guide.md --standalone

    # Verbose output
    python -m extramark docs/ html/ -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import Compiler, __version__, LOG, state_connectToLogger
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    prog="extramark",
    description="extramark - markdown to HTML with details, definition lists and abbreviations",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile",
    default="",
    type=str,
    help="Single markdown file to compile (relative to inputdir); default is every file matching --pattern",
)

parser.add_argument(
    "--pattern",
    default="*.md",
    type=str,
    help="Glob for source files within inputdir",
)

parser.add_argument(
    "--standalone",
    action="store_true",
    help="Wrap each output in a complete HTML document",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve source files.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFiles: Resolved markdown source paths
            - htmlOutputdir: Created output directory path
            - envOK: True if environment is valid

    Exits:
        1 if the input directory or input file is missing, or no source matches
    """

    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    if state.inputdir is None or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    if state.inputFile:
        input_file = state.inputdir / state.inputFile
        if not input_file.is_file():
            print(f"Error: Input file not found: {input_file}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.inputSourceFiles = [input_file]
    else:
        state.inputSourceFiles = sorted(
            path for path in state.inputdir.glob(state.pattern) if path.is_file()
        )
        if not state.inputSourceFiles:
            print(
                f"Error: No files matching '{state.pattern}' in {state.inputdir}",
                file=sys.stderr,
            )
            state.envOK = False
            sys.exit(1)

    LOG(f"Source files: {len(state.inputSourceFiles)}", level=2)

    if state.outputdir is None:
        print("Error: No output directory given", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    state.htmlOutputdir = state.outputdir
    state.htmlOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.htmlOutputdir}", level=2)

    state.envOK = True
    return state


def sources_read(inputstate: ProgramState) -> ProgramState:
    """
    Read every resolved source file.

    Args:
        inputstate: Program state with inputSourceFiles set

    Returns:
        ProgramState with added field:
            - sources: Mapping of path relative to inputdir -> markdown text

    Exits:
        1 if a file cannot be read
    """

    state = inputstate.copy()

    LOG("Reading source files...", level=1)

    if state.inputdir is None:
        print("Error: No input directory given", file=sys.stderr)
        sys.exit(1)

    sources = {}
    for source_file in state.inputSourceFiles:
        try:
            source = source_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading input file {source_file}: {e}", file=sys.stderr)
            sys.exit(1)
        name = str(source_file.relative_to(state.inputdir))
        sources[name] = source
        LOG(f"Read {len(source)} characters from {name}", level=2)

    state.sources = sources
    return state


def html_compile(inputstate: ProgramState) -> ProgramState:
    """
    Compile the sources to HTML files.

    Args:
        inputstate: Program state with sources read

    Returns:
        ProgramState with added field:
            - compileResult: Dict containing:
                - status: bool (compilation success)
                - output_files: List[str] (paths of generated files)
                - document_count: int (number of documents compiled)

    Exits:
        1 if no sources are available or compilation fails
    """

    state = inputstate.copy()

    LOG("Compiling markdown to HTML...", level=1)

    if not state.sources:
        print("Error: No sources available", file=sys.stderr)
        sys.exit(1)

    try:
        compiler = Compiler(
            sources=state.sources,
            output_dir=str(state.htmlOutputdir),
            standalone=state.standalone,
            verbosity=state.verbosity,
        )
        state.compileResult = compiler.compile()
        LOG(f"Compilation complete: {state.compileResult['document_count']} documents", level=2)
    except Exception as e:
        print(f"Compilation error: {e}", file=sys.stderr)
        if state.verbosity >= 3:
            import traceback

            traceback.print_exc()
        sys.exit(1)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display compilation results to user.

    Args:
        inputstate: Program state with compileResult populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if compileResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.compileResult:
        print("Error: Compilation failed", file=sys.stderr)
        sys.exit(1)

    LOG("✓ Compilation successful!", level=1)
    LOG(f"  Documents: {state.compileResult['document_count']}", level=1)
    for output_file in state.compileResult['output_files']:
        LOG(f"  Output: {output_file}", level=1)
    return state


def sources_compile(options: Namespace, inputdir: Path, outputdir: Path) -> ProgramState:
    """
    Run the full compilation pipeline over parsed options.

    Orchestrates:
        1. env_check: Validate paths and resolve source files
        2. sources_read: Read the markdown sources
        3. html_compile: Render and write HTML files
        4. results_report: Display results to user

    Args:
        options: CLI arguments (inputFile, pattern, standalone, verbosity)
        inputdir: Directory containing markdown sources
        outputdir: Directory where HTML files will be written

    Returns:
        Final ProgramState
    """
    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    return pipeline(state, env_check, sources_read, html_compile, results_report)


@chris_plugin(
    parser=parser,
    title="extramark - markdown to HTML with details, definition lists and abbreviations",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - compile markdown sources to HTML.

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing markdown sources
        outputdir: Directory for compiled HTML files

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """
    sources_compile(options, inputdir, outputdir)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
