"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(prog="crm-insights", description="CRM sales dashboard and data assistant")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings YAML",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding Accounts.csv, Contacts.csv, Leads.csv and Opportunites.csv",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # summary
    summary_parser = subparsers.add_parser("summary", help="Print dashboard aggregates as JSON")
    summary_parser.add_argument(
        "--stage",
        action="append",
        default=None,
        help="Restrict to a stage (repeatable; default: all stages)",
    )
    summary_parser.add_argument("--clicked-stage", default=None, help="Drill into one stage")
    summary_parser.add_argument("--month", default=None, help="Drill into one month, e.g. \"Jan '24\"")
    summary_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write JSON to file (default: stdout)",
    )

    # query
    query_parser = subparsers.add_parser("query", help="Run a query_crm request")
    source = query_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--json", dest="query_json", help="Query as inline JSON")
    source.add_argument("--file", type=Path, help="Read query JSON from file")

    # ask
    ask_parser = subparsers.add_parser("ask", help="Ask the data assistant a question")
    ask_parser.add_argument("question", help="Question in plain language")
    ask_parser.add_argument("--provider", default=None, help="anthropic | openai | ollama")
    ask_parser.add_argument("--model", default=None, help="Model name override")
    ask_parser.add_argument(
        "--show-transcript",
        action="store_true",
        help="Print the full tool-calling transcript as JSON",
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "summary":
        _run_summary(args)
    elif args.command == "query":
        _run_query(args)
    elif args.command == "ask":
        _run_ask(args)
    elif args.command == "serve":
        _run_serve(args)
    else:
        parser.print_help()


def _load_settings(args: argparse.Namespace):
    """Settings from --config (or environment), with CLI flags applied last."""
    from crm_insights.config import Settings

    settings = Settings.from_yaml(args.config) if args.config else Settings.from_env()
    updates = {}
    if args.data_dir is not None:
        updates["data_dir"] = args.data_dir
    for key in ("provider", "model", "host", "port"):
        value = getattr(args, key, None)
        if value is not None:
            updates[key] = value
    return settings.model_copy(update=updates) if updates else settings


def _load_data(settings):
    from crm_insights.store import DataLoadError, load_crm_data

    try:
        return load_crm_data(settings.data_dir)
    except DataLoadError as e:
        raise SystemExit(f"Could not load CRM data: {e}")


def _run_summary(args: argparse.Namespace) -> None:
    """Run summary command."""
    from crm_insights.dashboard import build_dashboard

    settings = _load_settings(args)
    data = _load_data(settings)
    view = build_dashboard(
        data,
        selected_stages=args.stage,
        clicked_stage=args.clicked_stage,
        clicked_month=args.month,
    )
    output = json.dumps(view.model_dump(mode="json", by_alias=True), indent=2)
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"{view.kpi_title}: {view.filtered_revenue_display} (wrote to {args.output})")
    else:
        print(output)


def _run_query(args: argparse.Namespace) -> None:
    """Run query command."""
    from pydantic import ValidationError

    from crm_insights.query import InvalidEntityError, QueryEngine

    raw = args.file.read_text() if args.file else args.query_json
    try:
        query = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SystemExit(f"Invalid query JSON: {e}")

    settings = _load_settings(args)
    engine = QueryEngine(_load_data(settings))
    try:
        result = engine.execute(query)
    except (InvalidEntityError, ValidationError) as e:
        raise SystemExit(f"Invalid query: {e}")
    print(json.dumps(result.to_payload(), indent=2, default=str))


def _run_ask(args: argparse.Namespace) -> None:
    """Run ask command: one user message through the agent loop."""
    from crm_insights.agent import ChatAgent
    from crm_insights.llm import ReasoningServiceError, ReasoningServiceRegistry
    from crm_insights.query import QueryEngine

    settings = _load_settings(args)
    try:
        service = ReasoningServiceRegistry.for_settings(settings)
    except ValueError as e:
        raise SystemExit(str(e))
    agent = ChatAgent.from_settings(settings, service, QueryEngine(_load_data(settings)))
    try:
        result = agent.reply([{"role": "user", "content": args.question}])
    except ReasoningServiceError as e:
        print(f"Assistant unavailable: {e}", file=sys.stderr)
        raise SystemExit(1)

    if args.show_transcript:
        print(json.dumps(result.transcript, indent=2, default=str))
    print(result.text)


def _run_serve(args: argparse.Namespace) -> None:
    """Run serve command."""
    import uvicorn

    from crm_insights.api import create_app

    settings = _load_settings(args)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
