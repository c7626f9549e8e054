#!/usr/bin/env python
"""
Ask a Protocol Question

Loads a protocol text file into a local index and prints the answer with
its citations.

Usage: python scripts/ask_protocol.py <protocol.txt> "<question>"
"""

import sys
from pathlib import Path

from fieldmedic.pipelines.protocol_qa import ProtocolQAPipeline


def main() -> int:
    if len(sys.argv) != 3:
        print(__doc__.strip().splitlines()[-1])
        return 2

    path = Path(sys.argv[1])
    if not path.is_file():
        print(f"Protocol file not found: {path}")
        return 1

    pipeline = ProtocolQAPipeline()
    snapshot = pipeline.load(path.read_text(encoding="utf-8"))
    print(f"Indexed {len(snapshot.chunks)} chunks from {path.name}")

    result = pipeline.run(sys.argv[2])
    if not result.results:
        print("No matching protocol text.")
        return 1

    print(f"\nAnswer: {result.answer}\n")
    for citation in result.citations:
        print(citation)
    return 0


if __name__ == "__main__":
    sys.exit(main())
