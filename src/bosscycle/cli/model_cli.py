import click
from dependency_injector.wiring import inject, Provide
from rich.console import Console
from rich.table import Table

from bosscycle.boss.model import BossModel
from bosscycle.boss.next_action_predictor import SEVERITY_MAP
from bosscycle.container import Container
from bosscycle.models import Severity


@click.group()
def model():
    """Inspect the boss reference data."""
    pass


def display_model(console: Console, boss_model: BossModel) -> None:
    console.print(
        f"[bold]{boss_model.boss_name}[/bold] ({boss_model.boss_id}) v{boss_model.version}"
    )

    for phase in boss_model.phases:
        table = Table(
            title=f"{phase.id} {phase.name}: HP ({phase.hp_min:g}, {phase.hp_max:g}], "
            f"AI{phase.ai_slot_count}"
        )
        table.add_column("Slot", style="cyan")
        table.add_column("Action", style="green")
        table.add_column("CT", style="yellow")
        table.add_column("Severity", style="magenta")
        table.add_column("Special", style="blue")

        for action in sorted(phase.actions, key=lambda a: a.ai_slot):
            table.add_row(
                f"AI{action.ai_slot}",
                action.name,
                f"{action.cooldown_seconds:g}s",
                SEVERITY_MAP.get(action.name, Severity.MEDIUM).value,
                action.special.value if action.special else "",
            )
        console.print(table)

    phrases = ", ".join(boss_model.reset_trigger_phrases()) or "(none)"
    console.print(f"AI reset phrases: {phrases}")


@model.command()
@inject
def show(boss_model: BossModel = Provide[Container.boss_model]):
    """Show phases, action rosters and reset phrases."""
    display_model(Console(), boss_model)
