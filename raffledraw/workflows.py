from typing import TYPE_CHECKING, Mapping, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from .draw import DrawEvent, DrawSequencer, RaffleNotFound, WinnerSelector
from .models import Lead, Raffle, RafflePrize

if TYPE_CHECKING:
    from .draw import CeremonyLocks

PrizeSpec = Union[str, Mapping[str, Optional[str]]]


def run_raffle_draw(
    session_factory: sessionmaker,
    raffle_id: int,
    *,
    selector: Optional[WinnerSelector] = None,
    locks: Optional["CeremonyLocks"] = None,
) -> list[DrawEvent]:
    """Run a complete ceremony for ``raffle_id`` and return its winners.

    This is the non-interactive counterpart of iterating a
    :class:`~raffledraw.draw.DrawSession`: every prize is drawn back to back.

    Parameters
    ----------
    session_factory : sessionmaker
        Factory producing sessions bound to the raffle database. Each prize is
        committed in its own transaction.
    raffle_id : int
        Raffle to draw.
    selector : Optional[WinnerSelector], default: None
        Selector override, e.g. a seeded one for reproducible runs.
    locks : Optional[CeremonyLocks], default: None
        Ceremony lock table. The process-wide default is used when omitted.

    Returns
    -------
    list[DrawEvent]
        One event per prize, in prize order.

    Raises
    ------
    RaffleDrawError
        Any engine error. When the ceremony aborts midway the error's
        ``prize_index`` tells which prize it stopped at; prizes before it
        remain drawn.
    """

    sequencer = DrawSequencer(session_factory, selector=selector, locks=locks)
    with sequencer.start(raffle_id) as draw:
        return draw.run()


def reset_raffle_draw(
    session_factory: sessionmaker,
    raffle_id: int,
    *,
    locks: Optional["CeremonyLocks"] = None,
) -> int:
    """Clear all winners of ``raffle_id`` so it can be drawn again.

    Returns the number of prizes cleared. Raises ``CeremonyInProgress`` while a
    ceremony holds the raffle's lock.
    """

    return DrawSequencer(session_factory, locks=locks).reset(raffle_id)


def save_raffle_prizes(
    session: Session,
    raffle: Raffle,
    prizes: Sequence[PrizeSpec],
) -> list[RafflePrize]:
    """Replace the prize list of ``raffle`` and renumber it from 1.

    The supplied order is the draw order: the first entry becomes the 1st
    prize. Existing prizes are updated in place by position, surplus ones are
    deleted and missing ones are created, so prize ids stay stable while a
    list is edited.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    raffle : Raffle
        Persisted raffle whose prizes are replaced.
    prizes : Sequence[str | Mapping]
        Prize names, or mappings with ``"name"`` and optional
        ``"description"``.

    Returns
    -------
    list[RafflePrize]
        The raffle's prizes after saving, in draw order.

    Raises
    ------
    ValueError
        If the raffle is not persisted, the list is empty, a prize has a blank
        name, or any prize of the raffle has already been drawn.
    """

    if raffle.id is None:
        raise ValueError("Raffle must be persisted before saving prizes")
    if not prizes:
        raise ValueError("A raffle must have at least one prize")

    normalized: list[tuple[str, Optional[str]]] = []
    for spec in prizes:
        if isinstance(spec, str):
            name, description = spec, None
        else:
            name, description = spec.get("name") or "", spec.get("description")
        if not name.strip():
            raise ValueError("Every prize needs a name")
        normalized.append((name.strip(), description))

    existing = RafflePrize.list_for_raffle(session, raffle.id)
    if any(prize.is_drawn for prize in existing):
        raise ValueError("Reset the raffle before editing prizes that were already drawn")

    # Free the current order values first so renumbering does not trip the
    # (raffle_id, prize_order) unique constraint mid-flush.
    parked_base = max([prize.prize_order for prize in existing] + [len(normalized)])
    for offset, prize in enumerate(existing, start=1):
        prize.prize_order = parked_base + offset
    session.flush()

    for surplus in existing[len(normalized):]:
        session.delete(surplus)

    saved: list[RafflePrize] = []
    for position, (name, description) in enumerate(normalized, start=1):
        if position <= len(existing):
            prize = existing[position - 1]
            prize.name = name
            prize.description = description
            prize.prize_order = position
        else:
            prize = RafflePrize(
                raffle_id=raffle.id,
                name=name,
                description=description,
                prize_order=position,
            )
            session.add(prize)
        saved.append(prize)

    session.flush()
    return saved


def list_raffle_winners(
    session: Session, raffle_id: int
) -> list[tuple[RafflePrize, Lead]]:
    """Return ``(prize, winner)`` pairs of the drawn prizes in prize order."""

    if session.get(Raffle, raffle_id) is None:
        raise RaffleNotFound(f"Raffle {raffle_id} not found", raffle_id=raffle_id)

    stmt = (
        select(RafflePrize, Lead)
        .join(Lead, Lead.id == RafflePrize.winner_id)
        .where(RafflePrize.raffle_id == raffle_id)
        .order_by(RafflePrize.prize_order.asc())
    )
    return [(prize, lead) for prize, lead in session.execute(stmt).all()]


def format_raffle_results(session: Session, raffle: Raffle) -> str:
    """Build the shareable result text of a drawn raffle.

    One line per drawn prize, e.g. ``"🏆 1º Lugar: Ana - Camiseta"``, framed
    by the raffle title and hashtags.

    Raises
    ------
    ValueError
        If social sharing is disabled for the raffle or nothing was drawn yet.
    """

    if not raffle.social_sharing_enabled:
        raise ValueError("Social sharing is disabled for this raffle")

    winners = list_raffle_winners(session, raffle.id)
    if not winners:
        raise ValueError("The raffle has no drawn prizes to share")

    lines = "\n".join(
        f"🏆 {prize.prize_order}º Lugar: {lead.name} - {prize.name}"
        for prize, lead in winners
    )
    return (
        f"🎉 Resultados do Sorteio: {raffle.title}\n\n"
        f"{lines}\n\n"
        "#Sorteio #Premiação"
    )
