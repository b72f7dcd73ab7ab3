"""
Team history service.

Builds a per-team list of settled rounds so the report screen can show every
profit-and-loss statement straight from the server.
"""
from typing import List, Dict, Any

from sqlalchemy.orm import Session

from models import TeamRound


def get_team_round_history(team_id: str, db: Session) -> List[Dict[str, Any]]:
    """
    Return an ordered list of rounds (round 1..N) the team has already been
    settled for.

    Each entry carries the round number, the decisions that were settled and
    the full results record.
    """
    rows = (
        db.query(TeamRound)
        .filter(TeamRound.team_id == team_id)
        .order_by(TeamRound.round_number)
        .all()
    )

    history: List[Dict[str, Any]] = []

    for team_round in rows:
        if team_round.results is None:
            # Not settled yet
            continue

        history.append({
            "round_number": team_round.round_number,
            "decisions": team_round.decisions,
            "results": team_round.results,
        })

    return history
