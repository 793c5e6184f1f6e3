import argparse
import asyncio
import os
import sys
from pathlib import Path

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from pdf_chat_server.db import AsyncSessionLocal, ChunkStore, init_db
from pdf_chat_server.embeddings.embedder import get_embedder
from pdf_chat_server.services.ingestion import ingest_pdf
from pdf_chat_server.services.retrieval import query_document


async def main(paths, question=None):
    print("Preparing database...")
    await init_db()
    embedder = get_embedder()

    for path in paths:
        pdf_path = Path(path)
        print(f"Ingesting {pdf_path.name}...")
        async with AsyncSessionLocal() as session:
            result = await ingest_pdf(
                pdf_path.read_bytes(), pdf_path.name, ChunkStore(session), embedder
            )
        print(f"  document {result.document_id}: {result.chunks_stored} chunks stored")

        if question:
            async with AsyncSessionLocal() as session:
                chunks = await query_document(
                    result.document_id, question, ChunkStore(session), embedder
                )
            for chunk in chunks:
                print(f"  [{chunk.similarity_score:.4f}] #{chunk.chunk_order}: {chunk.chunk_text[:80]!r}")


def build_parser():
    parser = argparse.ArgumentParser(description="Ingest PDF files into the chunk store")
    parser.add_argument("pdfs", nargs="+", help="PDF files to ingest")
    parser.add_argument("--ask", metavar="QUESTION", help="Question to run against each ingested PDF")
    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()

    asyncio.run(main(args.pdfs, args.ask))
