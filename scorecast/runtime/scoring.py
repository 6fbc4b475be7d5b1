from scorecast.models import SessionState


SCORE_ATTRIBUTE = "score"


def apply_scoring(
    state: SessionState,
    rate: float = 1.0,
    attribute: str = SCORE_ATTRIBUTE,
):
    """
    Default scheduled scoring: every entity earns ``rate`` scaled by the
    session's global multiplier.
    """
    award = rate * state.multiplier

    for entity in state.entities.values():
        entity.adjust(attribute, award)
