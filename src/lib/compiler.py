"""
Compiler for extramark sources to HTML files

Renders each markdown source with its own parse session and writes one
.html file per source.
"""

import html
from typing import Dict, List, Any
from pathlib import Path

from ..config import appsettings
from .parser import Parser
from .log import LOG, document_contextualize


class Compiler:
    """
    Compiles markdown sources to HTML files

    Responsibilities:
    - Render each source with a fresh parse session
    - Optionally wrap fragments in a standalone HTML document
    - Write output files
    """

    def __init__(
        self,
        sources: Dict[str, str],
        output_dir: str,
        standalone: bool = False,
        verbosity: int = 1,
    ) -> None:
        """
        Initialize compiler

        Args:
            sources: Mapping of source filename to markdown text, in
                     compilation order
            output_dir: Directory for compiled output
            standalone: Wrap each fragment in a complete HTML document
            verbosity: Output verbosity level (0-3)
        """
        self.sources = sources
        self.output_dir = Path(output_dir)
        self.standalone = standalone
        self.verbosity = verbosity
        self.document_count = 0

    def compile(self) -> Dict[str, Any]:
        """
        Compile every source to HTML

        Returns:
            dict with compilation results and statistics
        """
        LOG("Starting compilation...", level=2)

        self.output_dir.mkdir(parents=True, exist_ok=True)

        output_files: List[str] = []
        for source_name, source in self.sources.items():
            output_file = self.document_compile(source_name, source)
            output_files.append(str(output_file))

        LOG(f"Compiled {self.document_count} document(s)", level=2)

        return {
            'status': True,
            'output_files': output_files,
            'document_count': self.document_count,
        }

    def document_compile(self, source_name: str, source: str) -> Path:
        """
        Render one source and write it next to the others

        Args:
            source_name: Source filename, used to name the output file
            source: Markdown text

        Returns:
            Path of the written HTML file
        """
        with document_contextualize(source_name):
            content = Parser(source).render()
            LOG(f"Rendered {len(content)} characters", level=3)

            if self.standalone:
                content = self.htmlDocument_build(content, Path(source_name).stem)

            # Sources in subdirectories keep their relative location
            relative = Path(source_name)
            output_file = self.output_dir / relative.parent / appsettings.outputName_make(relative.name)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(content, encoding='utf-8')
            self.document_count += 1
            LOG(f"Wrote {output_file}", level=2)
        return output_file

    def htmlDocument_build(self, content: str, title: str) -> str:
        """
        Build complete HTML document around a rendered fragment

        Args:
            content: Rendered HTML fragment
            title: Document title

        Returns:
            Complete HTML document
        """
        return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{html.escape(title)}</title>
</head>
<body>
{content}
</body>
</html>
"""
