#!/usr/bin/env python3
"""
Semantic Search Utility
Indexes each non-empty line of a text file into a fresh namespace of the
configured vector space and prints the nearest lines for a query.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vectorspace.core.config import get_vector_space, validate_vector_config
from vectorspace.core.errors import VectorSpaceError
from vectorspace.vector.types import TextItem


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Index a text file line by line and run a knn query.")
    parser.add_argument("--file", required=True, help="Text file, one item per line")
    parser.add_argument("--query", required=True, help="Query text")
    parser.add_argument("--namespace", default="semantic-search", help="Namespace to index into")
    parser.add_argument("--k", type=int, default=3, help="Number of results")
    parser.add_argument("--keep", action="store_true", help="Keep the namespace after searching")
    return parser.parse_args(argv)


async def run(args) -> int:
    lines = [line.strip() for line in Path(args.file).read_text(encoding="utf-8").splitlines()]
    items = [TextItem(line) for line in lines if line]
    if not items:
        print("No entries to index. Exiting.")
        return 0

    space = get_vector_space(item_type=TextItem)

    if await space.namespace_exists(args.namespace):
        await space.delete_namespace(args.namespace)
    await space.create_namespace(args.namespace)

    try:
        await space.add_items(args.namespace, items)
        print(f"✓ Indexed {len(items)} lines into '{args.namespace}'")

        results = await space.knn(args.namespace, args.query, args.k)
        print(f"Top {len(results)} results for: {args.query}")
        for rank, item in enumerate(results, start=1):
            print(f"  {rank}. {item.text}")
    finally:
        if not args.keep:
            await space.delete_namespace(args.namespace)

    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    issues = validate_vector_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        return 1

    try:
        return asyncio.run(run(args))
    except VectorSpaceError as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
