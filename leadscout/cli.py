from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown

from leadscout.assistant import GREETING, AssistantSession, AssistantToolBridge
from leadscout.competitor import analyze_competitor
from leadscout.config import DEFAULT_CONFIG_PATH, default_config, load_config
from leadscout.errors import AuthorizationError, InvalidFormatError, LeadNotFoundError, ScoutingError, StoreError
from leadscout.filters import apply_filters
from leadscout.models import SENTIMENTS, SearchParams
from leadscout.outputs.csv_writer import write_leads_csv
from leadscout.outputs.report import render_competitor_report, render_lead_report, write_report
from leadscout.run import Workspace, open_workspace, print_leads_table, run_scout
from leadscout.store import LeadStore

logger = logging.getLogger("leadscout.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNAUTHORIZED = 2


def _add_filter_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--min-rating", type=float, default=None, help="Lowest rating to show")
    cmd.add_argument("--max-rating", type=float, default=None, help="Highest rating to show")
    cmd.add_argument("--chatbot", action="store_true", help="Only leads with an AI chatbot")
    cmd.add_argument("--booking", action="store_true", help="Only leads with online booking")
    cmd.add_argument("--sentiment", choices=["all", *SENTIMENTS], default="all", help="Review sentiment filter")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="leadscout", description="Local lead scouting console")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to YAML config")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scout_cmd = sub.add_parser("scout", help="Discover and audit businesses")
    scout_cmd.add_argument("--industry", required=True, help="Business category, e.g. 'dentists'")
    scout_cmd.add_argument("--location", required=True, help="City or area to scout")
    _add_filter_args(scout_cmd)

    list_cmd = sub.add_parser("list", help="List stored leads")
    list_cmd.add_argument("--saved", action="store_true", help="Only saved leads")
    _add_filter_args(list_cmd)

    show_cmd = sub.add_parser("show", help="Show the intelligence report for a lead")
    show_cmd.add_argument("lead_id")
    show_cmd.add_argument("--output", default=None, help="Also write the report to this markdown file")

    save_cmd = sub.add_parser("save", help="Toggle the saved flag of a lead")
    save_cmd.add_argument("lead_id")

    note_cmd = sub.add_parser("note", help="Update notes, proposal or pitch angle of a lead")
    note_cmd.add_argument("lead_id")
    note_cmd.add_argument("--notes", default=None)
    note_cmd.add_argument("--proposal", default=None)
    note_cmd.add_argument("--pitch", default=None, help="New pitch angle")

    compete_cmd = sub.add_parser("compete", help="Compare a lead with a competitor website")
    compete_cmd.add_argument("lead_id")
    compete_cmd.add_argument("competitor_url")

    chat_cmd = sub.add_parser("chat", help="Talk to the assistant about your leads")
    chat_cmd.add_argument("--message", default=None, help="Send one message and exit")

    export_cmd = sub.add_parser("export", help="Export the lead database")
    export_cmd.add_argument("path", nargs="?", default=None, help="Destination file")
    export_cmd.add_argument("--format", choices=["sqlite", "csv"], default="sqlite")

    import_cmd = sub.add_parser("import", help="Replace the lead database with a .sqlite file")
    import_cmd.add_argument("path")

    sub.add_parser("reset", help="Erase all stored leads")

    return parser


def _load_config(path: str) -> dict:
    if path == DEFAULT_CONFIG_PATH and not Path(path).exists():
        logger.info("no config at %s, using defaults", path)
        return default_config()
    return load_config(path)


def _search_params(args: argparse.Namespace, industry: str = "", location: str = "") -> SearchParams:
    params = SearchParams(industry=industry, location=location)
    if args.min_rating is not None:
        params.min_rating = args.min_rating
    if args.max_rating is not None:
        params.max_rating = args.max_rating
    params.filter_chatbot = args.chatbot
    params.filter_booking = args.booking
    params.filter_sentiment = args.sentiment
    return params


def cmd_scout(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    params = _search_params(args, industry=args.industry, location=args.location)
    result = run_scout(workspace, params, console=console)
    console.print(f"Stored {len(result['leads'])} leads in {workspace.store.snapshot_path}")
    return EXIT_OK


def cmd_list(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    leads = workspace.repository.get_saved() if args.saved else workspace.repository.get_all()
    params = _search_params(args)
    if args.min_rating is None:
        params.min_rating = 0.0
    if args.max_rating is None:
        params.max_rating = 5.0
    print_leads_table(console, apply_filters(leads, params), title="Saved Leads" if args.saved else "All Leads")
    return EXIT_OK


def cmd_show(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    lead = workspace.repository.get_by_id(args.lead_id)
    if lead is None:
        console.print(f"No lead with id {args.lead_id}")
        return EXIT_ERROR
    report = render_lead_report(lead)
    console.print(Markdown(report))
    if args.output:
        write_report(args.output, report)
    return EXIT_OK


def cmd_save(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    saved = workspace.repository.toggle_save(args.lead_id)
    if saved is None:
        console.print(f"No lead with id {args.lead_id}")
        return EXIT_ERROR
    console.print(f"{args.lead_id}: {'saved' if saved else 'removed from saved'}")
    return EXIT_OK


def cmd_note(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    updated = workspace.repository.update_intelligence(
        args.lead_id,
        notes=args.notes,
        proposal=args.proposal,
        pitch_angle=args.pitch,
    )
    console.print(f"{args.lead_id}: {'updated' if updated else 'nothing to update'}")
    return EXIT_OK


def cmd_compete(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    lead = workspace.repository.get_by_id(args.lead_id)
    if lead is None:
        console.print(f"No lead with id {args.lead_id}")
        return EXIT_ERROR
    with console.status("Analyzing competitor..."):
        report = analyze_competitor(workspace.llm, workspace.config["ai"]["audit_model"], lead, args.competitor_url)
    console.print(Markdown(render_competitor_report(lead, report)))
    return EXIT_OK


def cmd_chat(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    bridge = AssistantToolBridge(
        workspace.repository,
        on_data_changed=lambda: console.print("[dim]lead database updated[/dim]"),
    )
    session = AssistantSession(workspace.llm, bridge, model=workspace.config["ai"]["chat_model"])
    if not workspace.llm.has_credentials():
        raise AuthorizationError(f"{workspace.llm.api_key_env} is not set")

    if args.message:
        console.print(session.send(args.message))
        return EXIT_OK

    console.print(GREETING)
    console.print("[dim]Type 'history' to review the conversation, 'exit' to leave.[/dim]")
    while True:
        try:
            message = console.input("[bold]> [/bold]").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if message.lower() in {"exit", "quit"}:
            break
        if not message:
            continue
        if message.lower() == "history":
            for entry in session.transcript:
                console.print(f"[bold]{entry.role}:[/bold] {entry.content}")
            continue
        with console.status("Thinking..."):
            reply = session.send(message)
        console.print(reply)
    return EXIT_OK


def cmd_export(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    stamp = datetime.now(timezone.utc).date().isoformat()
    if args.format == "csv":
        path = args.path or f"leadscout_export_{stamp}.csv"
        write_leads_csv(path, workspace.repository.get_all())
    else:
        path = str(workspace.store.write_snapshot_file(args.path or f"leadscout_export_{stamp}.sqlite"))
    console.print(f"Exported to {path}")
    return EXIT_OK


def cmd_import(workspace: Workspace, args: argparse.Namespace, console: Console) -> int:
    workspace.store.import_snapshot_file(args.path)
    console.print(f"Imported {len(workspace.repository.get_all())} leads from {args.path}")
    return EXIT_OK


COMMANDS = {
    "scout": cmd_scout,
    "list": cmd_list,
    "show": cmd_show,
    "save": cmd_save,
    "note": cmd_note,
    "compete": cmd_compete,
    "chat": cmd_chat,
    "export": cmd_export,
    "import": cmd_import,
}


def run_command(args: argparse.Namespace, console: Console) -> int:
    try:
        config = _load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"Config error: {exc}")
        return EXIT_ERROR

    if args.command == "reset":
        LeadStore(config["storage"]["snapshot_path"]).reset()
        console.print("Lead database erased")
        return EXIT_OK

    try:
        workspace = open_workspace(config)
    except InvalidFormatError as exc:
        console.print(f"Stored database is unreadable ({exc}). Run 'leadscout reset' or import a backup.")
        return EXIT_ERROR

    try:
        return COMMANDS[args.command](workspace, args, console)
    except AuthorizationError as exc:
        console.print(
            f"AI access is not authorized: {exc}\n"
            f"Set {config['ai']['api_key_env']} to a valid API key and run the command again."
        )
        return EXIT_UNAUTHORIZED
    except ScoutingError as exc:
        console.print(f"AI request failed: {exc}. Check your connection and try again.")
        return EXIT_ERROR
    except InvalidFormatError as exc:
        console.print(f"Import rejected, existing database kept: {exc}")
        return EXIT_ERROR
    except LeadNotFoundError as exc:
        console.print(str(exc))
        return EXIT_ERROR
    except (StoreError, FileNotFoundError, ValueError) as exc:
        console.print(f"Error: {exc}")
        return EXIT_ERROR
    finally:
        workspace.close()


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    raise SystemExit(run_command(args, Console()))
