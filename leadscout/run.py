from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from leadscout.enricher import WebsiteAuditor
from leadscout.filters import apply_filters
from leadscout.http import RequestManager
from leadscout.llm import LLMClient
from leadscout.models import Lead, SearchParams
from leadscout.repository import LeadRepository
from leadscout.scouting import ScoutingPipeline
from leadscout.store import LeadStore

logger = logging.getLogger("leadscout.run")


@dataclass
class Workspace:
    """The process-wide store and the collaborators that share it."""

    config: dict
    store: LeadStore
    repository: LeadRepository
    llm: LLMClient

    def close(self) -> None:
        self.store.close()


def open_workspace(config: dict, llm: LLMClient | None = None) -> Workspace:
    store = LeadStore(config["storage"]["snapshot_path"])
    store.initialize()
    ai_cfg = config["ai"]
    if llm is None:
        llm = LLMClient(api_key_env=ai_cfg["api_key_env"], timeout_seconds=float(ai_cfg.get("timeout_seconds", 60)))
    return Workspace(config=config, store=store, repository=LeadRepository(store), llm=llm)


def build_pipeline(config: dict, llm: LLMClient) -> ScoutingPipeline:
    scouting_cfg = config["scouting"]
    auditor = None
    if scouting_cfg.get("website_audit", True):
        auditor = WebsiteAuditor(RequestManager(timeout_seconds=int(config["http"]["timeout_seconds"])))
    return ScoutingPipeline(
        llm,
        models=config["ai"],
        auditor=auditor,
        min_businesses=int(scouting_cfg["min_businesses"]),
        max_businesses=int(scouting_cfg["max_businesses"]),
    )


def run_scout(
    workspace: Workspace,
    params: SearchParams,
    pipeline: ScoutingPipeline | None = None,
    console: Console | None = None,
) -> dict:
    pipeline = pipeline or build_pipeline(workspace.config, workspace.llm)
    console = console or Console()

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console, transient=True) as progress:
        task = progress.add_task(f"Scouting {params.industry} in {params.location}", total=None)

        def report(done: int, total: int) -> None:
            progress.update(
                task,
                description=f"Auditing digital presence ({done}/{total})",
                total=total or 1,
                completed=done,
            )

        leads = pipeline.scout(params, on_progress=report)

    workspace.repository.upsert_many(leads)
    visible = apply_filters(leads, params)
    logger.info("scouted %d leads, %d match filters", len(leads), len(visible))

    print_leads_table(console, visible, title=f"Scout Results: {params.industry} in {params.location}")
    return {"leads": leads, "visible": visible}


def print_leads_table(console: Console, leads: list[Lead], title: str = "Leads") -> None:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Rating", justify="right")
    table.add_column("Chatbot")
    table.add_column("Booking")
    table.add_column("Sentiment")
    table.add_column("Saved")
    table.add_column("Top Gap")

    for lead in leads:
        table.add_row(
            lead.id,
            lead.name,
            f"{lead.rating:.1f}",
            "yes" if lead.has_chatbot else "no",
            "yes" if lead.has_online_booking else "no",
            lead.sentiment,
            "*" if lead.is_saved else "",
            lead.market_gaps[0] if lead.market_gaps else "",
        )

    if not leads:
        console.print("No leads match the current filters.")
        return
    console.print(table)
