import random

import pytest

from conftest import add_vote, make_session
from models import Gender, Name, VoteType
from name_picker import NamePicker, weighted_offset


@pytest.mark.parametrize(
    "count, r, expected",
    [
        (4, 0.0, 0),
        (4, 0.5, 1),      # 4 * 0.25
        (4, 0.7, 1),      # 4 * 0.49
        (4, 0.75, 2),     # 4 * 0.5625
        (4, 0.99, 3),
        (100, 0.5, 25),   # median draw lands a quarter of the way down
        (1, 0.999, 0),
    ],
)
def test_weighted_offset(count, r, expected):
    assert weighted_offset(count, r) == expected


def test_weighted_offset_favours_popular_names():
    rng = random.Random(7)
    draws = [weighted_offset(100, rng.random()) for _ in range(5000)]
    top_quarter = sum(1 for d in draws if d < 25)
    assert 0.45 < top_quarter / len(draws) < 0.55
    assert max(draws) <= 99


async def test_no_name_without_active_session(session, users, catalog):
    picker = NamePicker(session)
    assert await picker.get_next_unvoted_name("alice") is None

    await make_session(session, "alice")  # still waiting for a partner
    assert await picker.get_next_unvoted_name("alice") is None


async def test_most_popular_candidate_on_zero_draw(session, catalog, paired):
    picker = NamePicker(session, rng=lambda: 0.0)

    name = await picker.get_next_unvoted_name("alice")

    # Liam is more popular but fails the female filter
    assert name.text == "Emma"
    assert name.origin == "Germanic"


async def test_voted_names_are_skipped(session, catalog, paired):
    picker = NamePicker(session, rng=lambda: 0.0)
    await add_vote(session, paired, "alice", catalog["Emma"], VoteType.like)

    assert (await picker.get_next_unvoted_name("alice")).text == "Olivia"
    # the partner's pool is untouched
    assert (await picker.get_next_unvoted_name("bob")).text == "Emma"


async def test_none_when_every_candidate_voted(session, catalog, paired):
    for text in ("Emma", "Olivia", "Alex", "Sophia"):
        await add_vote(session, paired, "alice", catalog[text], VoteType.dislike)

    picker = NamePicker(session, rng=lambda: 0.5)
    assert await picker.get_next_unvoted_name("alice") is None


async def test_fixed_draw_sequence_walks_the_ordering(session, catalog, paired):
    # female filter, by popularity: Emma 90, Olivia 85, Alex 80, Sophia 60
    draws = iter([0.0, 0.6, 0.8, 0.99])
    picker = NamePicker(session, rng=lambda: next(draws))

    picked = [(await picker.get_next_unvoted_name("alice")).text for _ in range(4)]

    # 4*0=0 Emma, 4*.36=1 Olivia, 4*.64=2 Alex, 4*.98=3 Sophia
    assert picked == ["Emma", "Olivia", "Alex", "Sophia"]


async def test_gender_filter_over_many_draws(session, users):
    session.add_all([
        Name(text="Emma", gender=Gender.female, popularity_score=90),
        Name(text="Liam", gender=Gender.male, popularity_score=95),
        Name(text="Alex", gender=Gender.neutral, popularity_score=80),
    ])
    await session.commit()
    await make_session(session, "alice", "bob", Gender.female)

    picker = NamePicker(session, rng=random.Random(1234).random)
    seen = {(await picker.get_next_unvoted_name("alice")).text for _ in range(200)}

    assert seen == {"Emma", "Alex"}


async def test_neutral_target_takes_every_name(session, catalog, users):
    voting_session = await make_session(session, "alice", "bob", Gender.neutral)
    picker = NamePicker(session, rng=lambda: 0.0)

    assert (await picker.get_next_unvoted_name("bob")).text == "Liam"
    assert await picker.get_name_count_for_session(voting_session.id) == len(catalog)


async def test_name_count_for_session(session, catalog, users):
    girls = await make_session(session, "alice", "bob", Gender.female)
    boys = await make_session(session, "carol", None, Gender.male, join_code="XYZ789", partner_link="0123456789ab")
    picker = NamePicker(session)

    assert await picker.get_name_count_for_session(girls.id) == 4
    assert await picker.get_name_count_for_session(boys.id) == 3
    assert await picker.get_name_count_for_session("missing") == 0


async def test_name_count_ignores_votes(session, catalog, paired):
    await add_vote(session, paired, "alice", catalog["Emma"], VoteType.like)
    picker = NamePicker(session)

    assert await picker.get_name_count_for_session(paired.id) == 4
