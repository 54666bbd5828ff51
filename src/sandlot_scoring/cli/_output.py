from rich.console import Console
from rich.table import Table

from sandlot_scoring.domain.at_bat import AtBatEvent, PlayKind
from sandlot_scoring.domain.game import Game, LineScore
from sandlot_scoring.domain.game_flow import (
    AwaitingFirstPitch,
    GameComplete,
    GamePhase,
    HalfInningActive,
    HalfInningLocked,
)
from sandlot_scoring.domain.inning_state import HalfInningSummary
from sandlot_scoring.domain.lineup import LineupSlot
from sandlot_scoring.domain.runner import Runner
from sandlot_scoring.services.plate_appearance import DisambiguationRequired, PlayCommitted
from sandlot_scoring.services.scoring_session import GameState, HalfInningReview
from sandlot_scoring.services.stats import BattingLine, PitchingSummary

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_BASE_NAMES = {1: "1st", 2: "2nd", 3: "3rd", 4: "home"}


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def format_phase(phase: GamePhase) -> str:
    match phase:
        case AwaitingFirstPitch():
            return "awaiting first pitch"
        case HalfInningActive(inning=inning, half=half):
            return f"{half} {inning} in progress"
        case HalfInningLocked(inning=inning, half=half):
            return f"{half} {inning} over"
        case GameComplete():
            return "final"


def print_game_created(game: Game) -> None:
    order = "bats first" if game.bat_first else "bats second"
    console.print(f"[bold green]Created[/bold green] game {game.id}: {game.name} vs {game.opponent_name} ({order})")


def print_lineup(slots: list[LineupSlot]) -> None:
    if not slots:
        console.print("No players in the lineup.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("Player ID", justify="right")
    table.add_column("Name")
    table.add_column("Pos")
    for slot in slots:
        order = str(slot.batting_order) if slot.is_starter else "bench"
        table.add_row(order, str(slot.player_id), slot.player_name, slot.position or "")
    console.print(table)


def print_runners(runners: tuple[Runner, ...] | list[Runner]) -> None:
    if not runners:
        console.print("  Bases empty")
        return
    for runner in runners:
        console.print(f"  Runner {runner.id}: player {runner.player_id} on {_BASE_NAMES[runner.current_base]}")


def print_summary(summary: HalfInningSummary) -> None:
    status = " [bold](locked)[/bold]" if summary.is_locked else ""
    console.print(
        f"{summary.half} {summary.inning}: {summary.outs} out, {summary.runs} R, "
        f"{summary.hits} H, {summary.errors} E{status}"
    )


def print_play_committed(committed: PlayCommitted) -> None:
    event = committed.event
    play = "" if event.play is PlayKind.STANDARD else f" ({event.play.replace('_', ' ')})"
    console.print(f"[bold green]Recorded[/bold green] #{event.id} {event.result}{play} for player {event.batter_id}")
    if committed.runs_on_play:
        console.print(f"  {committed.runs_on_play} run(s) scored, {event.rbi} RBI")
    print_summary(committed.summary)
    print_runners(committed.runners)
    console.print(f"  Now: {format_phase(committed.phase)}")


def print_disambiguation(pending: DisambiguationRequired) -> None:
    console.print("[bold yellow]Ground out with runners aboard.[/bold yellow] Which runners were also put out?")
    print_runners(pending.candidates)
    console.print("  Use 'sandlot resolve' with the runner ids (none for a plain ground out) or 'sandlot cancel'.")


def print_line_score(line_score: LineScore, game: Game) -> None:
    top_name, bottom_name = (game.name, game.opponent_name) if game.bat_first else (game.opponent_name, game.name)
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("")
    for inning in line_score.innings:
        table.add_column(str(inning.inning), justify="right")
    table.add_column("R", justify="right", style="bold")
    table.add_row(
        top_name,
        *["" if i.top is None else str(i.top) for i in line_score.innings],
        str(line_score.top_total),
    )
    table.add_row(
        bottom_name,
        *["" if i.bottom is None else str(i.bottom) for i in line_score.innings],
        str(line_score.bottom_total),
    )
    console.print(table)


def print_game_state(state: GameState) -> None:
    game = state.game
    console.print(
        f"[bold]{game.name}[/bold] {game.team_score} - {game.opponent_score} "
        f"[bold]{game.opponent_name}[/bold] ({format_phase(state.phase)})"
    )
    print_summary(state.summary)
    if game.current_half is game.batting_half:
        print_runners(state.runners)
    if state.due_up is not None:
        console.print(f"  Due up: {state.due_up.player_name} (#{state.due_up.batting_order})")
    if state.pending is not None:
        print_disambiguation(state.pending)


def print_events(events: tuple[AtBatEvent, ...] | list[AtBatEvent]) -> None:
    if not events:
        console.print("No plate appearances.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("ID", justify="right")
    table.add_column("#", justify="right")
    table.add_column("Batter", justify="right")
    table.add_column("Result")
    table.add_column("Base", justify="right")
    table.add_column("RBI", justify="right")
    table.add_column("Scored")
    table.add_column("Notes")
    for e in events:
        result = str(e.result) if e.play is PlayKind.STANDARD else f"{e.result} ({e.play})"
        table.add_row(
            str(e.id),
            str(e.batting_order or ""),
            str(e.batter_id),
            result,
            str(e.base_reached),
            str(e.rbi),
            "yes" if e.run_scored else "",
            e.notes or "",
        )
    console.print(table)


def print_review(review: HalfInningReview) -> None:
    print_summary(review.summary)
    print_events(review.events)
    if review.runners:
        print_runners(review.runners)


def print_batting_lines(lines: list[BattingLine]) -> None:
    if not lines:
        console.print("No batting lines.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Player")
    for col in ("PA", "AB", "H", "2B", "3B", "HR", "BB", "R", "RBI", "SO", "SB", "AVG", "OBP", "SLG", "OPS"):
        table.add_column(col, justify="right")
    for line in lines:
        t = line.totals
        table.add_row(
            line.player_name or str(line.player_id),
            str(t.plate_appearances),
            str(t.at_bats),
            str(t.hits),
            str(t.doubles),
            str(t.triples),
            str(t.home_runs),
            str(t.walks),
            str(t.runs),
            str(t.rbi),
            str(t.strikeouts),
            str(t.stolen_bases),
            line.avg,
            line.obp,
            line.slg,
            line.ops,
        )
    console.print(table)


def print_pitching_lines(lines: list[PitchingSummary]) -> None:
    if not lines:
        console.print("No pitching lines.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Player", justify="right")
    for col in ("IP", "H", "R", "ER", "BB", "K", "HR", "W-L-S", "ERA", "WHIP", "K/7", "BB/7"):
        table.add_column(col, justify="right")
    for line in lines:
        t = line.totals
        table.add_row(
            str(line.player_id),
            line.innings_pitched,
            str(t.hits_allowed),
            str(t.runs_allowed),
            str(t.earned_runs),
            str(t.walks),
            str(t.strikeouts),
            str(t.home_runs_allowed),
            f"{t.wins}-{t.losses}-{t.saves}",
            line.era,
            line.whip,
            line.strikeouts_per_7,
            line.walks_per_7,
        )
    console.print(table)
