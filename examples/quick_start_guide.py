#!/usr/bin/env python3
"""
Quick Start Guide for tagtree.

Parses a small document, walks the resulting tree, shows the output formats
and what a malformed document reports.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tagtree import ParserConfig, TagTreeParser, parse_string
from tagtree.api import get_adapter
from tagtree.tree import OutputFormat, TreeRenderer

SAMPLE = """
<library>
  <book><title>Dune</title><author>Frank Herbert</author></book>
  <book><title>Solaris</title>Stanisław Lem</book>
</library>
"""


def quick_start_example():
    """Parse a document and inspect its tree."""

    print("QUICK START - tagtree")
    print("=" * 45)

    result = parse_string(SAMPLE)
    document = result.document
    print(f"Parsed {document.total_elements} elements, depth {document.max_depth}")

    for title in document.find_all("title"):
        print(f"  title: {title.text_content}")

    print("\nOutline:")
    print(TreeRenderer().render(document, OutputFormat.OUTLINE))


def output_formats_example():
    """Render one tree in every output format."""

    print("\n\nOUTPUT FORMATS")
    print("=" * 45)

    result = parse_string("<a>hello<b>world</b></a>")
    renderer = TreeRenderer()
    for output_format in OutputFormat:
        print(f"\n{output_format.value}:")
        print(renderer.render(result.document, output_format))


def error_reporting_example():
    """Show how failures come back as results."""

    print("\n\nERROR REPORTING")
    print("=" * 45)

    parser = TagTreeParser(ParserConfig.strict())
    for text in ["<a><b></a>", "<a>unclosed", "<a></a></b>"]:
        result = parser.parse(text)
        for diagnostic in result.diagnostics:
            print(f"{text!r}: {diagnostic.severity.name}: {diagnostic.message}")

    lenient = parser.parse("<a></a></b>ignored", config_override=ParserConfig.lenient())
    print(f"\nLenient parse kept {lenient.node_count} node(s), "
          f"ignored {lenient.document.ignored_trailing_input!r}")
    print(f"Statistics: {parser.statistics}")


def adapter_example():
    """Convert a tree to ElementTree."""

    print("\n\nADAPTERS")
    print("=" * 45)

    adapter = get_adapter("elementtree")
    conversion = adapter.to_target(parse_string("<a>x<b>y</b>z</a>"))
    element = conversion.converted_data
    print(f"ElementTree root <{element.tag}> with child <{element[0].tag}>")


def main():
    """Main function."""
    quick_start_example()
    output_formats_example()
    error_reporting_example()
    adapter_example()
    return 0


if __name__ == "__main__":
    sys.exit(main())
