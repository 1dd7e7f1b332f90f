#!/usr/bin/env python3
"""
Document RAG CLI - chunk, store, search and ask over case files.

Projects live in PROJECTS_DATA_DIR (default: data/projects). Settings are
read from the environment and an optional .env file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from chunking import ChunkingService, ChunkingServiceConfig, ChunkingStrategy, validate_chunks
from chunking.exceptions import ChunkingError, OperationCancelled, ProjectNotFoundError
from ingestion.exceptions import IngestionError, UploadError
from ingestion.extractors import extract_document
from ingestion.logging_config import setup_logging
from ingestion.pipeline import UploadPipeline
from retrieval.config import RetrievalConfig
from retrieval.embedder import OllamaEmbedder
from retrieval.exceptions import RetrievalError

logger = logging.getLogger(__name__)

STRATEGIES = {
    "paragraph": ChunkingStrategy.PARAGRAPH,
    "token": ChunkingStrategy.TOKEN,
}

SERVICES = {
    "chunking": "chunking.app:app",
    "retrieval": "retrieval.app:app",
    "generation": "generation.app:app",
}


def _print_progress(event: dict) -> None:
    label = event["type"].replace("_progress", "").replace("_", " ")
    print(f"\r  {label}: {event['current']}/{event['total']} ({event['percentage']}%)", end="", file=sys.stderr)
    if event["current"] >= event["total"]:
        print(file=sys.stderr)


def _embedder(config: RetrievalConfig) -> OllamaEmbedder:
    return OllamaEmbedder(
        model=config.embedding_model,
        base_url=config.ollama_base_url,
        batch_size=config.embedding_batch_size,
        max_retries=config.embedding_max_retries,
        retry_delay=config.embedding_retry_delay,
    )


# =============================================================================
# Commands
# =============================================================================


def cmd_project(args: argparse.Namespace) -> int:
    store = ChunkingService(ChunkingServiceConfig.from_env()).store
    if args.action == "create":
        metadata = store.create_project(args.name)
        print(f"Created project '{metadata.project_name}'")
    elif args.action == "delete":
        store.delete_project(args.name)
        print(f"Deleted project '{args.name}'")
    else:
        projects = store.list_projects()
        if not projects:
            print("No projects.")
        for project in projects:
            queried = project.last_queried.strftime("%Y-%m-%d %H:%M") if project.last_queried else "never"
            print(
                f"  {project.project_name:<30} {len(project.files):>3} files "
                f"{project.total_chunks:>6} chunks  last queried: {queried}"
            )
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    service = ChunkingService(ChunkingServiceConfig.from_env())
    embedder = None if args.no_embed else _embedder(RetrievalConfig.from_env())
    if embedder is not None:
        embedder.initialize()
    pipeline = UploadPipeline(service, embedder)
    on_event = None if args.quiet else _print_progress

    failures = 0
    for path in args.files:
        try:
            result = pipeline.upload_file(
                args.project,
                path,
                strategy=STRATEGIES.get(args.strategy),
                on_event=on_event,
            )
        except UploadError as e:
            logger.error(f"{path}: {e}")
            failures += 1
            continue
        print(
            f"{result.original_filename}: {result.chunk_count} chunks "
            f"({result.embedded_chunks} embedded, {result.chunking.dropped_chunks} dropped) "
            f"-> {result.file_name}"
        )
    return 1 if failures else 0


def cmd_files(args: argparse.Namespace) -> int:
    store = ChunkingService(ChunkingServiceConfig.from_env()).store
    files = store.list_documents(args.project)
    if not files:
        print("No files.")
    for entry in files:
        print(f"  {entry.file_name}  ({entry.original_name}, {entry.uploaded_at:%Y-%m-%d %H:%M})")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    store = ChunkingService(ChunkingServiceConfig.from_env()).store
    outcome = store.delete_document(args.project, args.file_name)
    print(f"Deleted {args.file_name}; {outcome['remaining']} chunks remain in '{args.project}'")
    return 0


def cmd_chunk(args: argparse.Namespace) -> int:
    service = ChunkingService(ChunkingServiceConfig.from_env())
    extracted = extract_document(args.file)
    result = service.chunk_text(
        extracted.text,
        extracted.source_file,
        strategy=STRATEGIES.get(args.strategy),
        page_ranges=extracted.page_ranges or None,
    )
    payload = result.to_dict()
    if args.validate:
        payload["validation"] = validate_chunks(result.chunks).to_dict()

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        print(f"Wrote {result.total_chunks} chunks to {args.output}")
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    from generation.config import GenerationConfig
    from generation.keywords import KeywordExtractor
    from retrieval.service import RetrievalService

    config = RetrievalConfig.from_env()
    extractor = KeywordExtractor(GenerationConfig.from_env())
    service = RetrievalService(config, _embedder(config), extract_terms=extractor.extract_terms)
    response = service.retrieve(
        args.project,
        args.question,
        top_k=args.top_k,
        mode=args.mode,
        keywords=args.keywords,
    )
    if args.json:
        print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
        return 0

    for n, result in enumerate(response.results, start=1):
        terms = ", ".join(f"{m.term}x{m.count}" for m in result.keyword_matches)
        print(f"[{n}] {result.match_type:<8} {result.score:.3f}  {result.source_file} / {result.chunk.id}")
        if terms:
            print(f"     keywords: {terms}")
        print(f"     {result.chunk.text[:200]}")
    if response.stats:
        print(f"\n{json.dumps(response.stats.to_dict(), indent=2)}")
    return 0


def cmd_ask(args: argparse.Namespace) -> int:
    from generation.config import GenerationConfig
    from generation.service import AnswerService

    service = AnswerService(GenerationConfig.from_env())
    response = service.ask(args.project, args.question, top_k=args.top_k, mode=args.mode)
    print(response.answer)
    print(f"\nSources ({response.sources_used}):")
    for source in response.sources:
        pages = f" p.{source.page_start}-{source.page_end}" if source.page_start else ""
        print(f"  [{source.number}] {source.file_name}{pages} ({source.match_type} {source.score:.3f})")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(SERVICES[args.service], host=args.host, port=args.port)
    return 0


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chunk, store, search and ask over document projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s project create "Smith v. Acme"
  %(prog)s upload "Smith v. Acme" records/complaint.pdf records/notes.txt
  %(prog)s search "Smith v. Acme" "When was the claim denied?" --mode hybrid
  %(prog)s ask "Smith v. Acme" "Why was the claim denied?"
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    project = sub.add_parser("project", help="Create, list or delete projects")
    project.add_argument("action", choices=["create", "list", "delete"])
    project.add_argument("name", nargs="?", help="Project name (create/delete)")
    project.set_defaults(func=cmd_project)

    upload = sub.add_parser("upload", help="Extract, chunk, embed and store files")
    upload.add_argument("project")
    upload.add_argument("files", nargs="+", type=Path)
    upload.add_argument("--strategy", choices=sorted(STRATEGIES), help="Default: token for PDFs, paragraph otherwise")
    upload.add_argument("--no-embed", action="store_true", help="Store chunks without embeddings")
    upload.set_defaults(func=cmd_upload)

    files = sub.add_parser("files", help="List files in a project")
    files.add_argument("project")
    files.set_defaults(func=cmd_files)

    delete = sub.add_parser("delete", help="Delete a file and its chunks")
    delete.add_argument("project")
    delete.add_argument("file_name", help="Stored chunk file name (see 'files')")
    delete.set_defaults(func=cmd_delete)

    chunk = sub.add_parser("chunk", help="Chunk a file and print the chunks as JSON")
    chunk.add_argument("file", type=Path)
    chunk.add_argument("--strategy", choices=sorted(STRATEGIES))
    chunk.add_argument("--validate", action="store_true", help="Include a chunk validation report")
    chunk.add_argument("-o", "--output", type=Path, help="Write JSON here instead of stdout")
    chunk.set_defaults(func=cmd_chunk)

    for name, func, helptext in (
        ("search", cmd_search, "Retrieve relevant chunks"),
        ("ask", cmd_ask, "Answer a question from the project's documents"),
    ):
        cmd = sub.add_parser(name, help=helptext)
        cmd.add_argument("project")
        cmd.add_argument("question")
        cmd.add_argument("--mode", choices=["semantic", "keyword", "hybrid"])
        cmd.add_argument("-k", "--top-k", type=int)
        cmd.set_defaults(func=func)
        if name == "search":
            cmd.add_argument("--keywords", nargs="+", help="Search terms (default: extracted from the question)")
            cmd.add_argument("--json", action="store_true", help="Print the full response as JSON")
            cmd.set_defaults(mode="hybrid", top_k=5)

    serve = sub.add_parser("serve", help="Run one of the HTTP services")
    serve.add_argument("service", choices=sorted(SERVICES))
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else None)
    setup_logging(level=log_level, log_file=args.log_file)

    if args.command == "project" and args.action != "list" and not args.name:
        parser.error(f"project {args.action} needs a project name")

    try:
        return args.func(args)
    except ProjectNotFoundError as e:
        logger.error(str(e))
        return 1
    except OperationCancelled as e:
        logger.warning(str(e))
        return 130
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except (ChunkingError, RetrievalError, IngestionError) as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
