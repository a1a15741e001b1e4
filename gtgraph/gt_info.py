"""CLI utility to inspect gt graph files.

Example:
    gt-info graph.gt.zst --properties
    gt-info https://networks.skewed.de/net/advogato/files/advogato.gt.zst
"""

import argparse
import logging
import sys
from pathlib import Path

import httpx

from gtgraph.errors import GTFormatError
from gtgraph.graph import Graph


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_source(source: str, validate_neighbors: bool = True) -> Graph:
    """Load a graph from a local path or an http(s) URL."""
    if _is_url(source):
        return Graph.from_url(source, validate_neighbors=validate_neighbors)
    return Graph.from_file(source, validate_neighbors=validate_neighbors)


def print_summary(graph: Graph, show_properties: bool = False) -> None:
    print(f"  Comment:    {graph.comment}")
    print(f"  Directed:   {graph.directed}")
    print(f"  Vertices:   {graph.num_vertices:,}")
    print(f"  Edges:      {graph.num_edges:,}")
    print(f"  Properties: {len(graph.file.properties)}")

    if not show_properties:
        return

    print()
    print(f"  {'SCOPE':<8} {'TYPE':<20} NAME")
    for prop in graph.file.properties:
        print(f"  {prop.map_type.name.lower():<8} {prop.value_type.name.lower():<20} {prop.name}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Inspect a graph-tool binary (.gt / .gt.zst) file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Header and counts
  gt-info graph.gt.zst

  # Also list property maps
  gt-info graph.gt --properties

  # Accept neighbor ids outside the vertex range
  gt-info graph.gt --no-validate
        """,
    )
    parser.add_argument("source", help="Path or http(s) URL of the gt file")
    parser.add_argument(
        "--properties", "-p", action="store_true", help="List property maps"
    )
    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Do not reject neighbor ids >= vertex count",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not _is_url(args.source) and not Path(args.source).exists():
        print(f"Error: Graph file not found: {args.source}", file=sys.stderr)
        sys.exit(1)

    print(f"Loading graph from {args.source}\n")

    try:
        graph = load_source(args.source, validate_neighbors=not args.no_validate)
    except (GTFormatError, OSError, httpx.HTTPError) as e:
        print(f"Error loading graph: {e}", file=sys.stderr)
        sys.exit(1)

    print_summary(graph, show_properties=args.properties)


if __name__ == "__main__":
    main()
