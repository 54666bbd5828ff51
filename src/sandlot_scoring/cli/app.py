from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Annotated, NoReturn

import typer

from sandlot_scoring.cli._logging import configure_logging
from sandlot_scoring.cli._output import (
    console,
    print_batting_lines,
    print_disambiguation,
    print_error,
    print_game_created,
    print_game_state,
    print_line_score,
    print_lineup,
    print_pitching_lines,
    print_play_committed,
    print_review,
    print_runners,
)
from sandlot_scoring.cli.factory import SetupContext, build_session, build_setup_context, load_settings
from sandlot_scoring.config import ScoringConfigError, ScoringSettings
from sandlot_scoring.domain.at_bat import AtBatPatch, PlateAppearance, PlateResult
from sandlot_scoring.domain.errors import ScoringError
from sandlot_scoring.domain.game import Half
from sandlot_scoring.domain.pitching import PitchingLine
from sandlot_scoring.domain.result import Err, Ok
from sandlot_scoring.services.plate_appearance import DisambiguationRequired, PlayCommitted
from sandlot_scoring.services.scoring_session import GameScoringSession

app = typer.Typer(name="sandlot", help="Sandlot baseball live scoring")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
    config: Annotated[str, typer.Option("--config", help="YAML config file")] = "sandlot.yaml",
    db: Annotated[str | None, typer.Option("--db", help="SQLite database path (overrides config)")] = None,
) -> None:
    """Sandlot baseball live scoring."""
    configure_logging(verbose=verbose)
    try:
        ctx.obj = load_settings(config, db)
    except ScoringConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


def _settings(ctx: typer.Context) -> ScoringSettings:
    settings = ctx.obj
    assert isinstance(settings, ScoringSettings)
    return settings


@contextmanager
def _scoring(
    ctx: typer.Context,
    game_id: int,
    *,
    write: bool = True,
    force: bool = False,
) -> Iterator[GameScoringSession]:
    try:
        with build_session(_settings(ctx), game_id, write=write, force=force) as session:
            yield session
    except ScoringError as e:
        print_error(e.message)
        raise typer.Exit(code=1) from None


@contextmanager
def _setup(ctx: typer.Context) -> Iterator[SetupContext]:
    with build_setup_context(_settings(ctx)) as setup_ctx:
        yield setup_ctx


def _fail(error: ScoringError) -> NoReturn:
    print_error(error.message)
    raise typer.Exit(code=1)


_GameArg = Annotated[int, typer.Argument(help="Game ID")]
_ForceOpt = Annotated[bool, typer.Option("--force", help="Take over the game from another scorer")]

# --- game subcommand group ---

game_app = typer.Typer(name="game", help="Create games")
app.add_typer(game_app, name="game")


@game_app.command("create")
def game_create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Our team name")],
    opponent: Annotated[str, typer.Argument(help="Opponent team name")],
    bat_first: Annotated[bool, typer.Option("--bat-first/--bat-second", help="Whether our team bats in the top half")] = True,
    innings: Annotated[int | None, typer.Option("--innings", help="Regulation innings")] = None,
    game_date: Annotated[datetime | None, typer.Option("--date", formats=["%Y-%m-%d"], help="Game date")] = None,
) -> None:
    """Create a scheduled game."""
    max_innings = innings if innings is not None else _settings(ctx).max_innings
    with _setup(ctx) as setup_ctx:
        result = setup_ctx.setup.create_game(
            name,
            opponent,
            bat_first=bat_first,
            max_innings=max_innings,
            game_date=game_date.date() if game_date is not None else None,
        )
    match result:
        case Ok(game):
            print_game_created(game)
        case Err(e):
            _fail(e)


# --- lineup subcommand group ---

lineup_app = typer.Typer(name="lineup", help="Manage a game's batting lineup")
app.add_typer(lineup_app, name="lineup")


@lineup_app.command("add")
def lineup_add(
    ctx: typer.Context,
    game_id: _GameArg,
    player_id: Annotated[int, typer.Argument(help="Player ID")],
    player_name: Annotated[str, typer.Argument(help="Player name")],
    order: Annotated[int | None, typer.Option("--order", help="Batting order slot (omit for bench)")] = None,
    position: Annotated[str | None, typer.Option("--position", help="Fielding position")] = None,
) -> None:
    """Add a player to a scheduled game's lineup."""
    with _setup(ctx) as setup_ctx:
        result = setup_ctx.setup.add_to_lineup(
            game_id, player_id, player_name, batting_order=order, position=position
        )
        lineup = setup_ctx.setup.lineup(game_id)
    match result:
        case Ok(_):
            print_lineup(lineup)
        case Err(e):
            _fail(e)


@lineup_app.command("show")
def lineup_show(ctx: typer.Context, game_id: _GameArg) -> None:
    """Show a game's lineup and bench."""
    with _setup(ctx) as setup_ctx:
        print_lineup(setup_ctx.setup.lineup(game_id))


@lineup_app.command("sub")
def lineup_sub(
    ctx: typer.Context,
    game_id: _GameArg,
    out_player_id: Annotated[int, typer.Argument(help="Player leaving the lineup")],
    in_player_id: Annotated[int, typer.Argument(help="Player entering the lineup")],
    name: Annotated[str | None, typer.Option("--name", help="Name of a player not yet on the roster")] = None,
    position: Annotated[str | None, typer.Option("--position", help="Fielding position of the substitute")] = None,
) -> None:
    """Substitute a player; the substitute takes over the batting order slot."""
    with _scoring(ctx, game_id) as session:
        match session.substitute(out_player_id, in_player_id, in_player_name=name, position=position):
            case Ok(slot):
                console.print(f"[bold green]{slot.player_name}[/bold green] now bats #{slot.batting_order}")
            case Err(e):
                _fail(e)


# --- scoring commands ---


@app.command("start")
def start(ctx: typer.Context, game_id: _GameArg) -> None:
    """Start a scheduled game."""
    with _scoring(ctx, game_id) as session:
        match session.start_game():
            case Ok(state):
                print_game_state(state)
            case Err(e):
                _fail(e)


@app.command("record")
def record(
    ctx: typer.Context,
    game_id: _GameArg,
    result: Annotated[PlateResult, typer.Argument(help="Plate appearance result")],
    base: Annotated[int | None, typer.Option("--base", "-b", help="Base the batter reached (4 = scored)")] = None,
    batter: Annotated[int | None, typer.Option("--batter", help="Batter player ID (default: due up)")] = None,
    inning: Annotated[int | None, typer.Option("--inning", help="Inning (default: current)")] = None,
    rbi: Annotated[int | None, typer.Option("--rbi", help="RBI (default: derived from the play)")] = None,
    notes: Annotated[str | None, typer.Option("--notes", help="Free-text notes")] = None,
    fielder: Annotated[str | None, typer.Option("--fielder", help="Fielding position involved")] = None,
    on_error: Annotated[bool, typer.Option("--on-error", help="Batter reached on a fielding error")] = False,
) -> None:
    """Record a plate appearance for the batter due up."""
    with _scoring(ctx, game_id) as session:
        match session.batting_scope():
            case Ok(scope):
                pass
            case Err(e):
                _fail(e)
        if batter is None:
            match session.next_batter():
                case Ok(slot) if slot is not None:
                    batter = slot.player_id
                case Ok(_):
                    _fail(ScoringError(f"game {game_id} has no batting lineup"))
                case Err(e):
                    _fail(e)
        assert batter is not None
        pa = PlateAppearance(
            game_id=game_id,
            inning=inning if inning is not None else scope.inning,
            half=scope.half,
            batter_id=batter,
            result=result,
            base_reached=base,
            rbi=rbi,
            notes=notes,
            fielding_position=fielder,
            reached_on_error=on_error,
        )
        match session.record_plate_appearance(pa):
            case Ok(PlayCommitted() as committed):
                print_play_committed(committed)
            case Ok(DisambiguationRequired() as pending):
                print_disambiguation(pending)
            case Err(e):
                _fail(e)


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    game_id: _GameArg,
    runner_ids: Annotated[list[int] | None, typer.Argument(help="Runners also put out on the play")] = None,
) -> None:
    """Finish a pending ground out by naming the runners it put out."""
    with _scoring(ctx, game_id) as session:
        match session.resolve_disambiguation(runner_ids or []):
            case Ok(committed):
                print_play_committed(committed)
            case Err(e):
                _fail(e)


@app.command("cancel")
def cancel(ctx: typer.Context, game_id: _GameArg) -> None:
    """Discard a pending ground out without recording anything."""
    with _scoring(ctx, game_id) as session:
        match session.cancel_disambiguation():
            case Ok(_):
                console.print("Pending play discarded.")
            case Err(e):
                _fail(e)


@app.command("edit")
def edit(
    ctx: typer.Context,
    game_id: _GameArg,
    event_id: Annotated[int, typer.Argument(help="Plate appearance ID")],
    result: Annotated[PlateResult | None, typer.Option("--result", help="Corrected result")] = None,
    base: Annotated[int | None, typer.Option("--base", "-b", help="Corrected base reached")] = None,
    rbi: Annotated[int | None, typer.Option("--rbi", help="Corrected RBI")] = None,
    batter: Annotated[int | None, typer.Option("--batter", help="Corrected batter player ID")] = None,
    notes: Annotated[str | None, typer.Option("--notes", help="Replacement notes (empty to clear)")] = None,
    fielder: Annotated[str | None, typer.Option("--fielder", help="Fielding position involved")] = None,
) -> None:
    """Correct a plate appearance in a half-inning that is still open."""
    patch = AtBatPatch(
        result=result,
        base_reached=base,
        rbi=rbi,
        batter_id=batter,
        notes=notes,
        fielding_position=fielder,
    )
    with _scoring(ctx, game_id) as session:
        match session.edit_plate_appearance(event_id, patch):
            case Ok(state):
                console.print(f"[bold green]Updated[/bold green] plate appearance {event_id}")
                print_game_state(state)
            case Err(e):
                _fail(e)


@app.command("delete")
def delete(
    ctx: typer.Context,
    game_id: _GameArg,
    event_id: Annotated[int, typer.Argument(help="Plate appearance ID")],
    yes: Annotated[bool, typer.Option("--yes", help="Skip confirmation")] = False,
) -> None:
    """Delete a plate appearance in a half-inning that is still open."""
    if not yes:
        typer.confirm(f"Delete plate appearance {event_id}?", abort=True)
    with _scoring(ctx, game_id) as session:
        match session.delete_plate_appearance(event_id):
            case Ok(state):
                console.print(f"[bold green]Deleted[/bold green] plate appearance {event_id}")
                print_game_state(state)
            case Err(e):
                _fail(e)


_RunnerArg = Annotated[int, typer.Argument(help="Runner ID")]
_ToBaseArg = Annotated[int, typer.Argument(help="Target base (4 = home)")]


@app.command("advance")
def advance(ctx: typer.Context, game_id: _GameArg, runner_id: _RunnerArg, to_base: _ToBaseArg) -> None:
    """Move a runner forward outside of a plate appearance."""
    with _scoring(ctx, game_id) as session:
        match session.advance_manual_runner(runner_id, to_base):
            case Ok(runners):
                print_runners(runners)
            case Err(e):
                _fail(e)


@app.command("steal")
def steal(ctx: typer.Context, game_id: _GameArg, runner_id: _RunnerArg, to_base: _ToBaseArg) -> None:
    """Record a stolen base."""
    with _scoring(ctx, game_id) as session:
        match session.steal_base(runner_id, to_base):
            case Ok(runners):
                print_runners(runners)
            case Err(e):
                _fail(e)


@app.command("putout")
def putout(
    ctx: typer.Context,
    game_id: _GameArg,
    runner_ids: Annotated[list[int], typer.Argument(help="Runners caught stealing or picked off")],
) -> None:
    """Take runners off the bases without a plate appearance."""
    with _scoring(ctx, game_id) as session:
        match session.put_out_runners(runner_ids):
            case Ok(runners):
                print_runners(runners)
            case Err(e):
                _fail(e)


@app.command("opponent")
def opponent(
    ctx: typer.Context,
    game_id: _GameArg,
    inning: Annotated[int, typer.Argument(help="Inning")],
    runs: Annotated[int, typer.Argument(help="Runs the opponent scored")],
) -> None:
    """Record the opponent's runs for one inning, closing their half."""
    with _scoring(ctx, game_id) as session:
        match session.record_opponent_half(inning, runs):
            case Ok(state):
                print_game_state(state)
            case Err(e):
                _fail(e)


@app.command("extra-inning")
def extra_inning(ctx: typer.Context, game_id: _GameArg) -> None:
    """Allow one more inning."""
    with _scoring(ctx, game_id) as session:
        match session.add_extra_inning():
            case Ok(game):
                console.print(f"Game {game_id} now scheduled for {game.max_innings} innings")
            case Err(e):
                _fail(e)


@app.command("unlock")
def unlock(ctx: typer.Context, game_id: _GameArg, force: _ForceOpt = False) -> None:
    """Release the writer lock left behind by an interrupted scorer."""
    if not force:
        typer.confirm(f"Take over scoring of game {game_id} from any other scorer?", abort=True)
    with _scoring(ctx, game_id, force=True):
        pass
    console.print(f"Writer lock for game {game_id} released")


# --- read-only commands ---


@app.command("summary")
def summary(
    ctx: typer.Context,
    game_id: _GameArg,
    inning: Annotated[int, typer.Argument(help="Inning")],
    half: Annotated[Half, typer.Argument(help="top or bottom")],
) -> None:
    """Show one half-inning's outs, runs, hits, errors and plays."""
    with _scoring(ctx, game_id, write=False) as session:
        match session.review(inning, half):
            case Ok(review):
                print_review(review)
            case Err(e):
                _fail(e)


@app.command("state")
def state(ctx: typer.Context, game_id: _GameArg) -> None:
    """Show the score, the current half-inning and who is due up."""
    with _scoring(ctx, game_id, write=False) as session:
        match session.state():
            case Ok(game_state):
                print_game_state(game_state)
            case Err(e):
                _fail(e)


@app.command("box")
def box(ctx: typer.Context, game_id: _GameArg) -> None:
    """Show the line score and batting box score."""
    with _scoring(ctx, game_id, write=False) as session:
        match session.state():
            case Ok(game_state):
                print_line_score(game_state.line_score, game_state.game)
            case Err(e):
                _fail(e)
    with _setup(ctx) as setup_ctx:
        try:
            lines = setup_ctx.stats.game_batting_lines(game_id)
        except ScoringError as e:
            _fail(e)
    print_batting_lines(lines)


@app.command("pitching")
def pitching(
    ctx: typer.Context,
    game_id: _GameArg,
    player_id: Annotated[int, typer.Argument(help="Pitcher player ID")],
    ip: Annotated[float, typer.Option("--ip", help="Innings pitched, e.g. 4.2")] = 0.0,
    hits: Annotated[int, typer.Option("--hits", help="Hits allowed")] = 0,
    runs: Annotated[int, typer.Option("--runs", help="Runs allowed")] = 0,
    earned: Annotated[int, typer.Option("--earned", help="Earned runs")] = 0,
    strikeouts: Annotated[int, typer.Option("--strikeouts", help="Strikeouts")] = 0,
    walks: Annotated[int, typer.Option("--walks", help="Walks")] = 0,
    home_runs: Annotated[int, typer.Option("--home-runs", help="Home runs allowed")] = 0,
    win: Annotated[bool, typer.Option("--win", help="Credit the win")] = False,
    loss: Annotated[bool, typer.Option("--loss", help="Charge the loss")] = False,
    save: Annotated[bool, typer.Option("--save", help="Credit the save")] = False,
) -> None:
    """Record a pitcher's line for a game."""
    line = PitchingLine(
        game_id=game_id,
        player_id=player_id,
        innings_pitched=ip,
        hits_allowed=hits,
        runs_allowed=runs,
        earned_runs=earned,
        strikeouts=strikeouts,
        walks=walks,
        home_runs_allowed=home_runs,
        win=win,
        loss=loss,
        save=save,
    )
    with _setup(ctx) as setup_ctx:
        match setup_ctx.stats.record_pitching_line(line):
            case Ok(_):
                print_pitching_lines(setup_ctx.stats.game_pitching_lines(game_id))
            case Err(e):
                _fail(e)


@app.command("stats")
def stats(ctx: typer.Context, player_id: Annotated[int, typer.Argument(help="Player ID")]) -> None:
    """Show a player's season batting and pitching lines."""
    with _setup(ctx) as setup_ctx:
        batting = setup_ctx.stats.batting_line(player_id)
        pitching_line = setup_ctx.stats.pitching_line(player_id)
    print_batting_lines([batting])
    if pitching_line.totals.outs_recorded:
        print_pitching_lines([pitching_line])

