"""
Inspection vote resolution.

A bananas claim is decided by a strict majority of the judges. The outcome
becomes ``rotten`` as soon as a winning majority is no longer reachable,
so the room never waits on votes that cannot change the result.
"""

from typing import NamedTuple

from bananas.logic.enums import InspectionOutcome, Vote
from bananas.logic.state import Inspection


class VoteTally(NamedTuple):
    valid: int
    rotten: int
    uncast: int
    threshold: int


class Resolution(NamedTuple):
    outcome: InspectionOutcome
    tally: VoteTally


def majority_threshold(judge_count: int) -> int:
    return judge_count // 2 + 1


def tally_votes(inspection: Inspection) -> VoteTally:
    """Count votes from current judges only."""
    judges = set(inspection.judges)
    cast = [vote for judge, vote in inspection.votes.items() if judge in judges]
    valid = sum(1 for vote in cast if vote == Vote.VALID)
    rotten = len(cast) - valid
    return VoteTally(
        valid=valid,
        rotten=rotten,
        uncast=len(judges) - len(cast),
        threshold=majority_threshold(len(judges)),
    )


def resolve(inspection: Inspection) -> Resolution:
    """
    Decide the inspection given the votes cast so far.

    With no judges the candidate wins outright. Otherwise ``winner`` once
    valid votes reach the threshold, ``rotten`` once rotten votes reach it or
    valid votes can no longer reach it, and ``pending`` in between.
    """
    tally = tally_votes(inspection)
    if not inspection.judges:
        return Resolution(InspectionOutcome.WINNER, tally)
    if tally.valid >= tally.threshold:
        return Resolution(InspectionOutcome.WINNER, tally)
    if tally.rotten >= tally.threshold or tally.valid + tally.uncast < tally.threshold:
        return Resolution(InspectionOutcome.ROTTEN, tally)
    return Resolution(InspectionOutcome.PENDING, tally)
